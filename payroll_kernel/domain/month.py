"""
Month keys.

Salary runs, revenue entries and dashboard filters are all keyed by a
calendar month written as ``YYYY-MM``.  Every public operation that accepts
a month validates it here first.
"""

import re

from payroll_kernel.exceptions import InvalidMonthError

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def validate_month(value: str) -> str:
    """
    Validate a ``YYYY-MM`` month key and return it unchanged.

    Raises:
        InvalidMonthError: if ``value`` is not a string, does not match the
            pattern, or the month is outside 01-12.
    """
    if not isinstance(value, str):
        raise InvalidMonthError(str(value))
    match = _MONTH_PATTERN.match(value.strip())
    if match is None:
        raise InvalidMonthError(value)
    year, month = int(match.group(1)), int(match.group(2))
    if year < 1 or not 1 <= month <= 12:
        raise InvalidMonthError(value)
    return f"{year:04d}-{month:02d}"


def is_valid_month(value: str) -> bool:
    try:
        validate_month(value)
        return True
    except InvalidMonthError:
        return False
