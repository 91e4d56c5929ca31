"""
CurrencyConverter -- USD/PKR rate holder, conversion and display formatting.

Responsibility:
    Holds the single PKR-per-USD rate for a session and converts between the
    two currencies.  Stored salary amounts are always PKR; USD is derived at
    read time, so changing the rate never recomputes persisted history, it
    only changes the implied USD rendering.

Architecture position:
    Kernel > Domain -- pure, no I/O.  A converter is constructed explicitly
    (from the settings row at session start, or directly in tests) and
    passed to the components that need it.  There is no module-level
    instance.

Failure modes:
    - InvalidRateError on a non-positive, non-finite or non-numeric rate,
      both at construction and in ``set_rate``.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import ClassVar

from payroll_kernel.db.types import BASE_CURRENCY, FOREIGN_CURRENCY, round_money
from payroll_kernel.exceptions import InvalidRateError, ValidationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("domain.currency")

DEFAULT_USD_TO_PKR_RATE = Decimal("278.50")


@dataclass(frozen=True)
class CurrencyDisplay:
    """Display conventions for one supported currency."""

    code: str
    symbol: str
    decimal_places: int


_DISPLAY: dict[str, CurrencyDisplay] = {
    FOREIGN_CURRENCY: CurrencyDisplay(FOREIGN_CURRENCY, "$", 2),
    BASE_CURRENCY: CurrencyDisplay(BASE_CURRENCY, "Rs ", 0),
}


def _to_decimal(value: Decimal | int | str | float) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not an amount")
    return Decimal(str(value))


def parse_rate(value: Decimal | int | str | float) -> Decimal:
    """
    Parse and validate a PKR-per-USD rate.

    Raises:
        InvalidRateError: rate is non-numeric, non-finite, or <= 0.
    """
    try:
        rate = _to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidRateError(str(value), "not a number") from None
    if not rate.is_finite():
        raise InvalidRateError(str(value), "rate must be finite")
    if rate <= 0:
        raise InvalidRateError(str(value), "rate must be positive")
    return rate


def format_currency(amount: Decimal | int | str, currency: str = BASE_CURRENCY) -> str:
    """
    Render an amount for display.

    USD: ``$1,234.56``.  PKR: ``Rs 1,235`` (no decimals).  Rounding is
    ROUND_HALF_UP and only ever applied here, never to stored amounts.
    """
    info = _DISPLAY.get(currency)
    if info is None:
        raise ValidationError(
            f"Unsupported display currency {currency!r}", field="currency",
        )
    value = round_money(_to_decimal(amount), info.decimal_places)
    sign = "-" if value < 0 else ""
    return f"{sign}{info.symbol}{abs(value):,.{info.decimal_places}f}"


class CurrencyConverter:
    """
    Converts between USD and PKR at one explicitly managed rate.

    Contract:
        ``to_pkr`` / ``to_usd`` are pure multiplication / division with no
        rounding.  ``set_rate`` is the only mutation and takes effect for
        every subsequent conversion and display call on this instance.

    Guarantees:
        - ``rate`` is always a finite Decimal > 0.
    """

    SUPPORTED: ClassVar[tuple[str, str]] = (FOREIGN_CURRENCY, BASE_CURRENCY)

    def __init__(self, rate: Decimal | int | str = DEFAULT_USD_TO_PKR_RATE):
        self._rate = parse_rate(rate)

    def __repr__(self) -> str:
        return f"<CurrencyConverter 1 USD = {self._rate} PKR>"

    @property
    def rate(self) -> Decimal:
        return self._rate

    def set_rate(self, rate: Decimal | int | str) -> Decimal:
        """
        Replace the current rate.

        Persisted PKR amounts are untouched; only subsequent conversions and
        display strings change.

        Raises:
            InvalidRateError: rate is non-numeric, non-finite, or <= 0.
        """
        new_rate = parse_rate(rate)
        previous = self._rate
        self._rate = new_rate
        logger.info(
            "exchange_rate_changed",
            extra={"previous_rate": previous, "new_rate": new_rate},
        )
        return new_rate

    def to_pkr(self, usd: Decimal | int | str) -> Decimal:
        return _to_decimal(usd) * self._rate

    def to_usd(self, pkr: Decimal | int | str) -> Decimal:
        return _to_decimal(pkr) / self._rate

    def format_currency(self, amount: Decimal | int | str, currency: str = BASE_CURRENCY) -> str:
        return format_currency(amount, currency)

    def format_dual(self, pkr: Decimal | int | str) -> str:
        """``Rs 280 ($1.00)`` for a PKR amount at the current rate."""
        return (
            f"{format_currency(pkr, BASE_CURRENCY)} "
            f"({format_currency(self.to_usd(pkr), FOREIGN_CURRENCY)})"
        )

    def format_dual_from_usd(self, usd: Decimal | int | str) -> str:
        """``Rs 280 ($1.00)`` for a USD amount at the current rate."""
        return (
            f"{format_currency(self.to_pkr(usd), BASE_CURRENCY)} "
            f"({format_currency(usd, FOREIGN_CURRENCY)})"
        )
