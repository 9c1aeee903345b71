from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal

_UNIT = Decimal(1)


def format_decimal(value: Decimal) -> str:
    """Plain notation without trailing zeros: ``1.500`` -> ``1.5``, ``2E+3`` -> ``2000``."""
    normalized = value.normalize()
    exponent = normalized.as_tuple().exponent
    if isinstance(exponent, int) and exponent > 0:
        normalized = normalized.quantize(_UNIT)
    return f"{normalized:f}"


def format_currency(value: Decimal, *, places: int = 2) -> str:
    quantum = _UNIT.scaleb(-places)
    return f"{value.quantize(quantum, rounding=ROUND_HALF_EVEN):f}"


def format_rate(value: Decimal) -> str:
    return f"{format_decimal(value * 100)}%"
