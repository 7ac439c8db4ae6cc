from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")


def parse_money(value: Any) -> Decimal:
    """
    把平台金额（通常是 "19.99" 这种字符串）转成两位小数的 Decimal。
    int / Decimal 直接转；float 先走 str()，不做二进制浮点运算。
    解析失败抛 ValueError（由上层包装成 InvalidPayload）。
    """
    if isinstance(value, bool):
        raise ValueError(f"not a monetary amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            raise ValueError(f"not a monetary amount: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"not a monetary amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(price: Decimal, quantity: int) -> Decimal:
    # 单价 × 数量，四舍五入到分
    return (price * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
