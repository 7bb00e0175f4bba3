from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Coerce a stored or user-supplied amount to Decimal without going through float."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_cents(value) -> Decimal:
    rounded = to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    # A sub-cent negative residue must not print as -0.00.
    if rounded.is_zero():
        return ZERO
    return rounded
