from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def round_money(value) -> Decimal:
    """
    Rounds a monetary amount to two decimals, half away from zero.

    Every monetary value produced by the pricing engine passes through here,
    so per-line rounding never drifts across a cart.

    Args:
        value: A Decimal (or anything to_money accepts).

    Returns:
        The amount quantized to 0.01.
    """
    if not isinstance(value, Decimal):
        return to_money(value)
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value) -> Decimal:
    """
    Converts ints, floats, strings, Decimals and None into a rounded Decimal.

    Floats go through str() first so 0.1 becomes Decimal("0.1") rather than
    its binary expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return round_money(value)
    if isinstance(value, float):
        value = str(value)
    return round_money(Decimal(value))


def percent_of(base: Decimal, percent: Decimal) -> Decimal:
    return round_money(base * percent / HUNDRED)


def money_to_json(value: Decimal) -> float:
    """Serializes a money Decimal as a 2-decimal JSON number."""
    return float(round_money(value))
