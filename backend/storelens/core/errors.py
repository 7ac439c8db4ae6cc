"""
   Webhook 摄取链路专用异常类型。
   签名/租户/载荷/存储错误各自一类，webhook 入口统一映射成 HTTP 状态码。
"""


class IngestError(Exception):
    """Base for all ingestion errors."""


class AuthenticationFailure(IngestError):
    """Missing or invalid webhook signature."""


class TenantNotFound(IngestError):
    """No active tenant owns the shop domain of the event."""

    def __init__(self, shop_domain: str):
        super().__init__(f"no active tenant for shop domain {shop_domain!r}")
        self.shop_domain = shop_domain


class InvalidPayload(IngestError):
    """Payload cannot be mapped to an entity (no usable key, bad value types)."""

    def __init__(self, entity: str, reason: str):
        super().__init__(f"invalid {entity} payload: {reason}")
        self.entity = entity
        self.reason = reason


class StorageConflict(IngestError):
    """Unique-key race on create that could not be resolved as an update."""


class StorageFailure(IngestError):
    """Database unreachable, timed out, or rejected the write."""
