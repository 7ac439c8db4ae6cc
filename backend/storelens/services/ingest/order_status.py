"""
订单状态推导（纯函数）

平台给的是三组信号：取消标记、financial_status、fulfillment_status，
内部只保留一个 OrderStatus。优先级：

    取消 → CANCELLED（永远最高）
    financial_first（默认）：已付款 → CONFIRMED，其次已发货 → SHIPPED
    fulfillment_first：已发货 → SHIPPED，其次已付款 → CONFIRMED
    都没有 → PENDING

优先级是业务策略，由 settings.ORDER_STATUS_PRECEDENCE 配置。
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from storelens.core.config import settings
from storelens.db.model.order import OrderStatus

FINANCIAL_FIRST = "financial_first"
FULFILLMENT_FIRST = "fulfillment_first"

CANCEL_SIGNALS = ("cancelled_at", "cancel_reason")
PAID_FINANCIAL_STATUSES = frozenset({"paid", "partially_paid"})
SHIPPED_FULFILLMENT_STATUSES = frozenset({"fulfilled", "shipped"})


def _norm(value: Any) -> str:
    return str(value or "").strip().lower()


def is_cancelled(signals: Mapping[str, Any]) -> bool:
    if any(signals.get(key) for key in CANCEL_SIGNALS):
        return True
    return any(
        "cancel" in _norm(signals.get(key))
        for key in ("financial_status", "fulfillment_status")
    )


def derive_order_status(signals: Mapping[str, Any], precedence: Optional[str] = None) -> OrderStatus:
    policy = precedence or settings.ORDER_STATUS_PRECEDENCE
    if policy not in (FINANCIAL_FIRST, FULFILLMENT_FIRST):
        raise ValueError(f"unknown order status precedence: {policy!r}")

    if is_cancelled(signals):
        return OrderStatus.CANCELLED

    paid = _norm(signals.get("financial_status")) in PAID_FINANCIAL_STATUSES
    shipped = _norm(signals.get("fulfillment_status")) in SHIPPED_FULFILLMENT_STATUSES

    checks = [(paid, OrderStatus.CONFIRMED), (shipped, OrderStatus.SHIPPED)]
    if policy == FULFILLMENT_FIRST:
        checks.reverse()

    for matched, status in checks:
        if matched:
            return status
    return OrderStatus.PENDING
