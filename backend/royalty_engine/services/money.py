"""
Decimal helpers shared by every royalty computation.

All money and percentage values are Decimal. Floats are rejected outright,
and rounding happens only through the helpers below.
"""

from decimal import (
    Decimal,
    InvalidOperation,
    ROUND_DOWN,
    ROUND_HALF_UP,
    getcontext,
    localcontext,
)
from typing import List, Sequence, Union

from royalty_engine.errors import InputValidationError, ParseError

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

# Enough headroom for pro-rata division on large catalogues
ENGINE_PRECISION = 34

DecimalLike = Union[Decimal, int, str]


def engine_context():
    """
    Return a local decimal context for one calculation.

    Decimal contexts are thread-local, so entering this in each entry point
    keeps concurrent calculations from sharing precision/rounding state.
    """
    ctx = getcontext().copy()
    ctx.prec = ENGINE_PRECISION
    ctx.rounding = ROUND_HALF_UP
    return localcontext(ctx)


def to_decimal(value: DecimalLike) -> Decimal:
    """
    Parse a value into an exact Decimal.

    Accepts Decimal, int, or a numeric string like "33.33". Floats and bools
    are refused because they have already lost precision.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ParseError(f"Refusing binary value {value!r}; pass a string or Decimal")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ParseError(f"Could not parse decimal from: {value!r}") from None
    else:
        raise ParseError(f"Unsupported decimal input type: {type(value).__name__}")

    if not result.is_finite():
        raise ParseError(f"Decimal must be finite, got: {value!r}")
    return result


def to_units(value: Union[int, Decimal], name: str) -> int:
    """Quantities are whole units; accept ints or integral Decimals."""
    if isinstance(value, bool):
        raise InputValidationError(f"{name} must be a whole number of units")
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise InputValidationError(f"{name} must be a whole number of units, got {value}")
        return int(value)
    if isinstance(value, int):
        return value
    raise InputValidationError(f"{name} must be a whole number of units, got {value!r}")


def quantize_currency(value: Decimal) -> Decimal:
    """Round to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def truncate(value: Decimal, places: int = 2) -> Decimal:
    """Cut a value down to `places` decimals without rounding up."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)


def allocate_pro_rata(total: Decimal, weights: Sequence[Decimal]) -> List[Decimal]:
    """
    Split a currency total across weights, one share per weight.

    Every share but the last is quantized to cents; the last one takes
    whatever is left so that sum(shares) == quantize_currency(total).

    Example:
        allocate_pro_rata(Decimal("100"), [1, 1, 1]) -> [33.33, 33.33, 33.34]
    """
    if not weights:
        return []

    weight_total = sum(weights, ZERO)
    if weight_total == 0:
        raise InputValidationError("Cannot allocate against weights that sum to zero")

    target = quantize_currency(total)
    shares: List[Decimal] = []
    allocated = ZERO
    for weight in weights[:-1]:
        share = quantize_currency(total * weight / weight_total)
        shares.append(share)
        allocated += share
    shares.append(target - allocated)
    return shares
