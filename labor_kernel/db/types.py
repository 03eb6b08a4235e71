"""
Module: labor_kernel.db.types
Responsibility: Canonical precision and rounding for money and hours.
    Every service, engine and model uses these helpers so that amounts are
    quantized identically everywhere.
Architecture position: Kernel > DB.  Imported by engines, models and
    services.  Pure functions, no I/O.

Invariants enforced:
    - No floats: every amount is a Decimal.
    - round_money() is the ONLY sanctioned rounding for currency values
      (2 places, ROUND_HALF_UP).
    - round_hours() quantizes hour figures for display/storage (4 places);
      wage arithmetic works from exact minute counts, not rounded hours.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

MONEY_DECIMAL_PLACES = 2
HOURS_DECIMAL_PLACES = 4
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")
MINUTES_PER_HOUR = Decimal("60")

_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)
_HOURS_QUANTUM = Decimal(1).scaleb(-HOURS_DECIMAL_PLACES)


def to_decimal(value: Any) -> Decimal:
    """
    Coerce an int/str/Decimal to Decimal.

    Floats are converted through ``str`` so 0.1 stays 0.1.

    Raises:
        ValueError: If value is None or not numeric.
    """
    if value is None:
        raise ValueError("Cannot convert None to Decimal")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a numeric value: {value!r}") from exc


def round_money(amount: Decimal) -> Decimal:
    """Quantize a currency amount to 2 places, half-up."""
    return amount.quantize(_MONEY_QUANTUM, rounding=DEFAULT_ROUNDING)


def round_hours(hours: Decimal) -> Decimal:
    """Quantize an hour figure to 4 places, half-up."""
    return hours.quantize(_HOURS_QUANTUM, rounding=DEFAULT_ROUNDING)


def minutes_to_hours(minutes: int) -> Decimal:
    """Convert whole minutes to Decimal hours (unrounded)."""
    return Decimal(minutes) / MINUTES_PER_HOUR
