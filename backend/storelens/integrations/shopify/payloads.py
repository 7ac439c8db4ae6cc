"""
Shopify webhook payload models.

Webhook bodies are loose JSON objects whose shape varies by topic and by
API version. Each entity is parsed into a pydantic model right at the boundary;
``model_fields_set`` tells a field that was sent (even as ``null``) apart from a
field that was not sent at all, which is what partial updates rely on.
``changes()`` returns only the present fields, already renamed to our columns.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from storelens.core.errors import InvalidPayload
from storelens.utils.clock import parse_timestamp
from storelens.utils.money import parse_money


P = TypeVar("P", bound="ShopifyPayload")


def _to_external_id(value: Any) -> Optional[str]:
    # 平台 id 可能是 int / str / "gid://shopify/Order/123"，统一字符串化
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"not an id: {value!r}")
        value = int(value)
    text = str(value).strip()
    return text or None


def _to_money(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return parse_money(value)


def _to_email(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text or None


def _collect(model: BaseModel, mapping: Dict[str, str], not_null: Iterable[str] = ()) -> Dict[str, Any]:
    """
    只收集 payload 里出现过的字段（src -> dest 改名）。
    出现但为 null 的字段：可空列 → 置空；非空列（金额/计数）→ 视同缺失。
    """
    required = set(not_null)
    present = model.model_fields_set
    out: Dict[str, Any] = {}
    for src, dest in mapping.items():
        if src not in present:
            continue
        value = getattr(model, src)
        if value is None and dest in required:
            continue
        out[dest] = value
    return out


class ShopifyPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, str_strip_whitespace=True)

    def present(self, name: str) -> bool:
        return name in self.model_fields_set


def parse_payload(model_cls: Type[P], data: Any, entity: str) -> P:
    """Validate ``data`` into ``model_cls``; any shape/type problem becomes InvalidPayload."""
    if not isinstance(data, dict):
        raise InvalidPayload(entity, f"expected a JSON object, got {type(data).__name__}")
    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ())) or "<root>"
        raise InvalidPayload(entity, f"{where}: {first.get('msg')}") from exc


def unwrap(payload: Any, wrapper: str) -> Any:
    """``{"order": {...}}`` 和裸对象 ``{...}`` 两种形态都接受。"""
    if isinstance(payload, dict) and isinstance(payload.get(wrapper), dict):
        return payload[wrapper]
    return payload


# ======================= customers =======================

class ShopifyLastOrder(ShopifyPayload):
    created_at: Optional[datetime] = None

    normalize_timestamps = field_validator("created_at", mode="before")(parse_timestamp)


class ShopifyCustomer(ShopifyPayload):
    id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    total_spent: Optional[Decimal] = None
    orders_count: Optional[int] = Field(default=None, ge=0)
    last_order: Optional[ShopifyLastOrder] = None

    normalize_id = field_validator("id", mode="before")(_to_external_id)
    normalize_email = field_validator("email", mode="before")(_to_email)
    normalize_money = field_validator("total_spent", mode="before")(_to_money)

    FIELD_MAP: ClassVar[Dict[str, str]] = {
        "email": "email",
        "first_name": "first_name",
        "last_name": "last_name",
        "phone": "phone",
        "total_spent": "total_spent",
        "orders_count": "orders_count",
    }

    def changes(self) -> Dict[str, Any]:
        out = _collect(self, self.FIELD_MAP, not_null=("total_spent", "orders_count"))
        if self.last_order is not None and self.last_order.present("created_at"):
            out["last_order_date"] = self.last_order.created_at
        return out


# ======================= products =======================

class ShopifyVariant(ShopifyPayload):
    id: Optional[str] = None
    price: Optional[Decimal] = None
    sku: Optional[str] = None

    normalize_id = field_validator("id", mode="before")(_to_external_id)
    normalize_money = field_validator("price", mode="before")(_to_money)


class ShopifyProduct(ShopifyPayload):
    id: Optional[str] = None
    title: Optional[str] = None
    handle: Optional[str] = None
    body_html: Optional[str] = None
    vendor: Optional[str] = None
    status: Optional[str] = None
    variants: Optional[List[ShopifyVariant]] = None

    normalize_id = field_validator("id", mode="before")(_to_external_id)

    FIELD_MAP: ClassVar[Dict[str, str]] = {
        "title": "title",
        "handle": "handle",
        "body_html": "description",
        "vendor": "vendor",
        "status": "status",
    }

    def changes(self) -> Dict[str, Any]:
        out = _collect(self, self.FIELD_MAP, not_null=("title", "status"))
        # price / sku 取第一个 variant
        if self.variants:
            first = self.variants[0]
            if first.present("price") and first.price is not None:
                out["price"] = first.price
            if first.present("sku"):
                out["sku"] = first.sku
        return out


# ======================= orders =======================

ORDER_STATUS_SIGNALS = ("cancelled_at", "cancel_reason", "financial_status", "fulfillment_status")


class ShopifyLineItem(ShopifyPayload):
    id: Optional[str] = None
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    title: Optional[str] = None
    name: Optional[str] = None
    sku: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    price: Optional[Decimal] = None

    normalize_ids = field_validator("id", "product_id", "variant_id", mode="before")(_to_external_id)
    normalize_money = field_validator("price", mode="before")(_to_money)

    @property
    def display_title(self) -> Optional[str]:
        # name 带规格（"T-shirt - L"），title 是商品名；优先商品名
        return self.title or self.name


class ShopifyOrder(ShopifyPayload):
    id: Optional[str] = None
    name: Optional[str] = None
    order_number: Optional[str] = None
    email: Optional[str] = None
    total_price: Optional[Decimal] = None
    currency: Optional[str] = None
    financial_status: Optional[str] = None
    fulfillment_status: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancel_reason: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    customer: Optional[Any] = None              # 单独解析：客户坏了（甚至不是对象）也不拖垮订单
    line_items: Optional[List[Any]] = None      # 逐行解析：坏行跳过

    normalize_id = field_validator("id", mode="before")(_to_external_id)
    normalize_email = field_validator("email", mode="before")(_to_email)
    normalize_money = field_validator("total_price", mode="before")(_to_money)
    normalize_timestamps = field_validator("processed_at", "created_at", mode="before")(parse_timestamp)

    FIELD_MAP: ClassVar[Dict[str, str]] = {
        "email": "email",
        "total_price": "total_price",
        "currency": "currency",
        "processed_at": "processed_at",
        "created_at": "created_at",
    }

    def display_number(self) -> Optional[str]:
        if self.name:
            return self.name
        if self.order_number:
            return self.order_number
        return None

    def status_signals(self) -> Dict[str, Any]:
        return {k: getattr(self, k) for k in ORDER_STATUS_SIGNALS if self.present(k)}

    def changes(self) -> Dict[str, Any]:
        out = _collect(self, self.FIELD_MAP, not_null=("total_price", "currency", "created_at"))
        number = self.display_number()
        if number:
            out["order_number"] = number
        return out
