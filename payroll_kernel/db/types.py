"""
Module: payroll_kernel.db.types
Responsibility: Currency codes and the rounding helper for stored payroll
    amounts.  Centralizes precision and rounding so that every model and
    service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in the payroll kernel.  Salary, revenue and bonus
      amounts use Decimal with explicit precision (Numeric(38, 9) columns
      via Base.type_annotation_map).
    - round_money() is the ONLY sanctioned rounding function for stored
      line-item amounts.
"""

from decimal import Decimal, ROUND_HALF_UP


BASE_CURRENCY = "PKR"
FOREIGN_CURRENCY = "USD"

# Stored line items are rounded to PKR minor units
LINE_ITEM_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def round_money(
    value: Decimal,
    decimal_places: int = LINE_ITEM_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Preconditions: value is a Decimal.
    Postconditions: Returns value quantized using the rounding mode
        (default ROUND_HALF_UP).
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=rounding)
