"""Input validation."""

from budget.validation.validator import (
    InputValidator,
    InvalidInputError,
    parse_amount,
    parse_date,
)

__all__ = [
    "InputValidator",
    "InvalidInputError",
    "parse_amount",
    "parse_date",
]
