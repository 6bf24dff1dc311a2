"""
Numeric helpers for user-entered money and quantity fields.

Fields arrive as numbers, numeric strings, empty strings or whatever a user
has half-typed. Nothing in here raises on bad input.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Optional

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def is_blank(value) -> bool:
    """True for None and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def parse_decimal(value) -> Optional[Decimal]:
    """Parse a field into a finite Decimal, or None when blank or not a number."""
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not number.is_finite():
        return None
    return number


def to_decimal(value, default: Decimal = ZERO) -> Decimal:
    """Parse a field, falling back to `default` (0) on a parse failure."""
    number = parse_decimal(value)
    return default if number is None else number


def _quantize(number: Decimal, places: int) -> Decimal:
    # Precision must cover every integer digit plus `places`, or quantize raises
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, number.adjusted() + places + 2)
        return number.quantize(ONE.scaleb(-places), rounding=ROUND_HALF_UP)


def money(value, places: int = 2) -> Decimal:
    """Round a currency value half-up to `places` decimals."""
    return _quantize(to_decimal(value), places)


def round_quantity(value) -> Decimal:
    """Round a converted quantity to the nearest whole unit."""
    return _quantize(to_decimal(value), 0)
