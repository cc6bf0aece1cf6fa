"""Fixed-point decimal helpers.

Every product and quotient is truncated to 18 fractional digits, the
same way the contract's fixed-point ``Decimal`` behaves. Sums and
differences go through ``add`` and ``sub``, which are exact for any
value the contract can hold regardless of the calling thread's context.
"""

from decimal import ROUND_DOWN, Context, Decimal, InvalidOperation

DECIMAL_PLACES = 18

ZERO = Decimal(0)
ONE = Decimal(1)

_QUANTUM = Decimal(1).scaleb(-DECIMAL_PLACES)
_CONTEXT = Context(prec=78, rounding=ROUND_DOWN)


def to_decimal(value: Decimal | int | str) -> Decimal:
    """Parse an amount, index or rate into a ``Decimal``.

    Chain responses carry decimals as strings. Floats are refused: an
    index that went through binary floating point is already wrong.
    """
    if isinstance(value, bool):
        raise TypeError("booleans are not amounts")
    if isinstance(value, float):
        raise TypeError(f"refusing binary float {value!r}; pass a string or Decimal")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"not a decimal number: {value!r}") from None
    else:
        raise TypeError(f"unsupported numeric type: {type(value).__name__}")
    if not result.is_finite():
        raise ValueError(f"not a finite decimal: {value!r}")
    return result


def quantize(value: Decimal) -> Decimal:
    return value.quantize(_QUANTUM, rounding=ROUND_DOWN, context=_CONTEXT)


def mul(a: Decimal, b: Decimal) -> Decimal:
    return quantize(_CONTEXT.multiply(a, b))


def div(a: Decimal, b: Decimal) -> Decimal:
    return quantize(_CONTEXT.divide(a, b))


def add(a: Decimal, b: Decimal) -> Decimal:
    return _CONTEXT.add(a, b)


def sub(a: Decimal, b: Decimal) -> Decimal:
    return _CONTEXT.subtract(a, b)
