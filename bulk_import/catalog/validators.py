from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from datetime import datetime
from decimal import Decimal, InvalidOperation

from ..models.field_spec import ValidationOutcome

"""Cell validators shared by all catalogs.

Every validator receives trimmed cell text and returns a ValidationOutcome.
Empty text is always valid (value ""): whether an empty cell is acceptable is
the transformer's decision, based on FieldSpec.required.
"""

__all__ = [
    "Validator",
    "validate_string",
    "validate_email",
    "validate_phone",
    "validate_date",
    "validate_number",
    "make_enum_validator",
    "normalize_token",
]

Validator = Callable[[str], ValidationOutcome]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s.]+$")
_PHONE_CHARS_RE = re.compile(r"^\+?[\d\s().\-]+$")
_NUMBER_RE = re.compile(r"^[+-]?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?$")
_TOKEN_RE = re.compile(r"[\W_]+")

PHONE_MIN_DIGITS = 9
PHONE_MAX_DIGITS = 15

# Day-first: source files are UK-format HR exports.
DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d/%m/%y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%d-%b-%Y",
)


def normalize_token(text: str) -> str:
    """Lowercase and drop everything except letters and digits ("E-mail" -> "email")."""
    return _TOKEN_RE.sub("", text.lower())


def validate_string(value: str) -> ValidationOutcome:
    return ValidationOutcome.valid(" ".join(value.split()))


def validate_email(value: str) -> ValidationOutcome:
    if not value:
        return ValidationOutcome.valid("")
    if not _EMAIL_RE.match(value):
        return ValidationOutcome.invalid("Not a valid email address")
    return ValidationOutcome.valid(value.lower())


def validate_phone(value: str) -> ValidationOutcome:
    if not value:
        return ValidationOutcome.valid("")
    if not _PHONE_CHARS_RE.match(value):
        return ValidationOutcome.invalid("Not a valid phone number")
    digits = sum(ch.isdigit() for ch in value)
    if not PHONE_MIN_DIGITS <= digits <= PHONE_MAX_DIGITS:
        return ValidationOutcome.invalid(
            f"Phone number must have {PHONE_MIN_DIGITS}-{PHONE_MAX_DIGITS} digits"
        )
    return ValidationOutcome.valid(" ".join(value.split()))


def validate_date(value: str) -> ValidationOutcome:
    if not value:
        return ValidationOutcome.valid("")
    text = " ".join(value.split())
    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return ValidationOutcome.valid(parsed.date().isoformat())
    return ValidationOutcome.invalid("Not a valid date (use DD/MM/YYYY or YYYY-MM-DD)")


def validate_number(value: str) -> ValidationOutcome:
    if not value:
        return ValidationOutcome.valid("")
    if not _NUMBER_RE.match(value):
        return ValidationOutcome.invalid("Not a valid number")
    try:
        number = Decimal(value.replace(",", ""))
    except InvalidOperation:  # pragma: no cover - regex already guarantees a decimal
        return ValidationOutcome.invalid("Not a valid number")
    return ValidationOutcome.valid(format(number.normalize(), "f"))


def make_enum_validator(options: Sequence[tuple[str, str]]) -> Validator:
    """Build a validator accepting any option value or label, case/punctuation-insensitive."""
    lookup: dict[str, str] = {}
    for value, label in options:
        lookup[normalize_token(value)] = value
        lookup[normalize_token(label)] = value
    allowed = ", ".join(label for _, label in options)

    def validate_enum(value: str) -> ValidationOutcome:
        if not value:
            return ValidationOutcome.valid("")
        canonical = lookup.get(normalize_token(value))
        if canonical is None:
            return ValidationOutcome.invalid(f"Must be one of: {allowed}")
        return ValidationOutcome.valid(canonical)

    return validate_enum
