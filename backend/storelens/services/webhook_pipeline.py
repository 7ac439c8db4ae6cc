"""
Webhook 入口编排（与 HTTP 框架无关，FastAPI 路由只负责读 body/header）

    验签 → 解析租户 → 落日志(RECEIVED) → PROCESSING → 路由 + upsert → COMPLETED / FAILED

响应约定：
    401  签名不对（不落日志）
    404  租户不存在/已停用（不落日志：没有租户可挂）
    500  body 不是 JSON、payload 无法映射、存储故障、未预期异常（日志 FAILED）
    200  {"ok": true}；未订阅的 topic 也回 200 并标 ignored

任何分支都不向调用方抛异常，也不把内部错误细节写进响应体。
"""
from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storelens.core.config import settings
from storelens.core.errors import AuthenticationFailure, InvalidPayload, StorageFailure, TenantNotFound
from storelens.integrations.shopify.signature import verify_signature
from storelens.services.event_router import RouteResult, route_event
from storelens.services.processing_log import ProcessingLog
from storelens.services.tenant_resolver import resolve_tenant

logger = logging.getLogger(__name__)


@dataclass
class WebhookResponse:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


UNAUTHORIZED = WebhookResponse(401, {"error": "Invalid signature"})
TENANT_NOT_FOUND = WebhookResponse(404, {"error": "Tenant not found"})
PROCESSING_FAILED = WebhookResponse(500, {"error": "processing failed"})


class WebhookPipeline:

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        secret: Optional[str] = None,
        processing_log: Optional[ProcessingLog] = None,
    ):
        self._session_factory = session_factory
        self._secret = secret if secret is not None else settings.SHOPIFY_WEBHOOK_SECRET
        self._log = processing_log or ProcessingLog(session_factory)

    def handle(
        self,
        raw_body: bytes,
        *,
        signature: Optional[str],
        topic: Optional[str],
        shop_domain: Optional[str],
    ) -> WebhookResponse:
        start = time.perf_counter()
        topic = (topic or "").strip()
        try:
            response = self._handle(raw_body, signature=signature, topic=topic, shop_domain=shop_domain or "")
        except Exception:
            # 兜底：入口永远要给平台一个响应
            logger.exception("webhook.unhandled topic=%s shop=%s", topic, shop_domain)
            response = PROCESSING_FAILED

        logger.info(
            "webhook.done topic=%s shop=%s status=%s elapsed_ms=%.1f",
            topic, shop_domain, response.status_code, (time.perf_counter() - start) * 1000,
        )
        return response

    def _handle(self, raw_body: bytes, *, signature: Optional[str], topic: str, shop_domain: str) -> WebhookResponse:
        # 1) 先验签，再看别的，避免伪造请求探测租户
        try:
            self._authenticate(raw_body, signature)
        except AuthenticationFailure:
            logger.warning("webhook.signature_invalid topic=%s shop=%s", topic, shop_domain)
            return UNAUTHORIZED

        # 2) 租户
        try:
            tenant_id = self._resolve_tenant_id(shop_domain)
        except TenantNotFound as exc:
            logger.warning("webhook.tenant_not_found shop=%s topic=%s", exc.shop_domain, topic)
            return TENANT_NOT_FOUND
        except StorageFailure:
            logger.exception("webhook.tenant_lookup_failed shop=%s", shop_domain)
            return PROCESSING_FAILED

        # 3) 先落日志，落不下来就不处理（回 500 让平台重投，事件不丢）
        log_id = self._log.open(tenant_id, topic, raw_body.decode("utf-8", errors="replace"))
        if log_id is None:
            return PROCESSING_FAILED
        self._log.start(log_id)

        # 4) 解析 + 路由 + upsert
        try:
            payload = json.loads(raw_body)
        except ValueError as exc:
            self._log.fail(log_id, f"invalid JSON body: {exc}")
            return PROCESSING_FAILED

        try:
            result = self._apply(tenant_id, topic, payload)
        except InvalidPayload as exc:
            logger.warning("webhook.invalid_payload log=%s topic=%s reason=%s", log_id, topic, exc)
            self._log.fail(log_id, str(exc))
            return PROCESSING_FAILED
        except StorageFailure as exc:
            logger.error("webhook.storage_failure log=%s topic=%s error=%s", log_id, topic, exc)
            self._log.fail(log_id, f"storage failure: {exc}")
            return PROCESSING_FAILED
        except Exception as exc:
            logger.exception("webhook.processing_failed log=%s topic=%s", log_id, topic)
            self._log.fail(log_id, f"{type(exc).__name__}: {exc}")
            return PROCESSING_FAILED

        self._log.complete(log_id)
        if not result.handled:
            return WebhookResponse(200, {"ok": True, "ignored": topic})
        return WebhookResponse(200, {"ok": True})

    def _authenticate(self, raw_body: bytes, signature: Optional[str]) -> None:
        if not verify_signature(raw_body, signature, self._secret):
            raise AuthenticationFailure("missing or invalid X-Shopify-Hmac-Sha256")

    def _resolve_tenant_id(self, shop_domain: str) -> uuid.UUID:
        try:
            with self._session_factory() as db:
                return resolve_tenant(db, shop_domain).id
        except SQLAlchemyError as exc:
            raise StorageFailure(str(exc)) from exc

    def _apply(self, tenant_id: uuid.UUID, topic: str, payload: Any) -> RouteResult:
        # 一个事件一个事务：订单头 + 删旧行 + 建新行要么全成要么全回滚
        with self._session_factory() as db:
            try:
                result = route_event(db, tenant_id, topic, payload)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise StorageFailure(str(exc)) from exc
            except Exception:
                db.rollback()
                raise
        return result
