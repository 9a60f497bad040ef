from decimal import ROUND_HALF_UP, Decimal

from pharmapos.core.constants import MONEY_QUANTUM

_QUANTUM = Decimal(MONEY_QUANTUM)
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # str() keeps 4.5 as 4.5 instead of its binary expansion.
        value = Decimal(str(value))
    return value.quantize(_QUANTUM, rounding=ROUND_HALF_UP)


def line_subtotal(unit_price, quantity: int) -> Decimal:
    return to_money(to_money(unit_price) * quantity)
