"""Turning operator input into typed task variables."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from onboarding_console.engine.models import FormField

STRING = "string"
LONG = "long"
DATE = "date"

SUPPORTED_TYPES = frozenset({STRING, LONG, DATE})

# Signed 64-bit decimal, ASCII digits only.
_LONG_PATTERN = re.compile(r"[+-]?[0-9]+")
LONG_MIN = -(2**63)
LONG_MAX = 2**63 - 1


class FormInputError(ValueError):
    """Operator input could not be converted to the field's declared type."""

    def __init__(self, field: FormField, raw: str, expected: str) -> None:
        self.field = field
        self.raw = raw
        super().__init__(f"Invalid value {raw!r} for '{field.name}': expected {expected}")


@dataclass(frozen=True, slots=True)
class FormInput:
    """Prompt hints and parsing rules for form field types."""

    date_format: str = "%Y-%m-%d"
    date_hint: str = "yyyy-MM-dd"

    def is_supported(self, field: FormField) -> bool:
        return field.type in SUPPORTED_TYPES

    def prompt(self, field: FormField) -> str:
        if field.type == LONG:
            return f"{field.name}? (Must be a whole number)"
        if field.type == DATE:
            return f"{field.name}? (Must be a date {self.date_hint})"
        return f"{field.name}?"

    def parse(self, field: FormField, raw: str) -> Any:
        """Convert a raw input line.

        Strings are kept unmodified; whole numbers become `int`, dates become
        `datetime.date`.

        Raises:
            FormInputError: The input does not match the declared type.
            ValueError: The field type is not supported.
        """
        if field.type == STRING:
            return raw
        if field.type == LONG:
            return self._parse_long(field, raw)
        if field.type == DATE:
            return self._parse_date(field, raw)
        raise ValueError(f"Unsupported form field type: {field.type}")

    def _parse_long(self, field: FormField, raw: str) -> int:
        text = raw.strip()
        if not _LONG_PATTERN.fullmatch(text):
            raise FormInputError(field, raw, "a whole number")
        value = int(text)
        if not LONG_MIN <= value <= LONG_MAX:
            raise FormInputError(field, raw, f"a whole number between {LONG_MIN} and {LONG_MAX}")
        return value

    def _parse_date(self, field: FormField, raw: str) -> date:
        try:
            return datetime.strptime(raw.strip(), self.date_format).date()
        except ValueError:
            raise FormInputError(field, raw, f"a date {self.date_hint}") from None
