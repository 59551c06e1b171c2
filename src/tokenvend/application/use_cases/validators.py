"""Pure validation functions for token vending input.

These functions contain business logic validation rules that can be tested
in isolation without dependencies on repositories or infrastructure.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, Mapping, Optional

from ...domain.entities import KEY_MATERIAL_FIELDS
from ...domain.errors import ValidationError

TOKEN_VALUE_PATTERN = re.compile(r"^[0-9-]+$")
TOKEN_MIN_DIGITS = 16
TOKEN_MAX_DIGITS = 46

METER_MIN_DIGITS = 6
METER_MAX_DIGITS = 20

LAST_TOKEN_MIN_DIGITS = 8
LAST_TOKEN_MAX_DIGITS = 20


def validate_token_value(value: str) -> str:
    """Validate a token value before issuance. Pure function.

    Args:
        value: Token as typed by the admin, digits optionally grouped by hyphens

    Returns:
        The value with surrounding whitespace removed.

    Raises:
        ValidationError: If the value has characters other than digits and
            hyphens, or its digit count is outside 16..46.
    """
    value = (value or "").strip()
    if not TOKEN_VALUE_PATTERN.match(value):
        raise ValidationError("Token must contain only digits and hyphens")
    digits = len(value.replace("-", ""))
    if digits < TOKEN_MIN_DIGITS or digits > TOKEN_MAX_DIGITS:
        raise ValidationError(
            f"Token must have between {TOKEN_MIN_DIGITS} and {TOKEN_MAX_DIGITS} "
            f"digits, got {digits}"
        )
    return value


def _validate_digits(value: str, label: str, min_len: int, max_len: int) -> str:
    value = (value or "").strip()
    if not value.isdigit() or not value.isascii():
        raise ValidationError(f"{label} must contain only digits")
    if len(value) < min_len or len(value) > max_len:
        raise ValidationError(
            f"{label} must be between {min_len} and {max_len} digits long"
        )
    return value


def validate_meter_number(meter_number: str) -> str:
    """Return the normalized meter number or raise ValidationError."""
    return _validate_digits(
        meter_number, "Meter number", METER_MIN_DIGITS, METER_MAX_DIGITS
    )


def validate_last_token(last_token: str) -> str:
    """The last token a customer bought; hyphens are allowed as separators."""
    return _validate_digits(
        (last_token or "").replace("-", ""),
        "Last token",
        LAST_TOKEN_MIN_DIGITS,
        LAST_TOKEN_MAX_DIGITS,
    )


def validate_disco(disco: str, allowed: Iterable[str]) -> str:
    normalized = (disco or "").strip().upper()
    allowed_set = {d.upper() for d in allowed}
    if normalized not in allowed_set:
        raise ValidationError(
            f"Unknown disco '{disco}'; expected one of {', '.join(sorted(allowed_set))}"
        )
    return normalized


def validate_units(units: int, max_units: int) -> int:
    if units <= 0:
        raise ValidationError("Units must be greater than zero")
    if units > max_units:
        raise ValidationError(f"Units must not exceed {max_units}")
    return units


def validate_key_material(fields: Mapping[str, Optional[str]]) -> Dict[str, str]:
    """Check that all eight key fields are present and not blank.

    Raises:
        ValidationError: Listing every missing field.
    """
    missing = [
        name for name in KEY_MATERIAL_FIELDS if not (fields.get(name) or "").strip()
    ]
    if missing:
        raise ValidationError(
            f"All key fields are required; missing {', '.join(missing)}"
        )
    return {name: (fields[name] or "").strip() for name in KEY_MATERIAL_FIELDS}


def validate_reference(reference: Optional[str]) -> str:
    reference = (reference or "").strip()
    if not reference:
        raise ValidationError("Payment reference is required")
    return reference


def validate_reason(reason: Optional[str]) -> str:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")
    return reason


def validate_slots(slots: int) -> int:
    if slots <= 0:
        raise ValidationError("Additional slots must be greater than zero")
    return slots


def validate_pagination(page: int, page_size: int, max_page_size: int = 100) -> None:
    if page < 1:
        raise ValidationError("Page numbers start at 1")
    if page_size < 1 or page_size > max_page_size:
        raise ValidationError(f"Page size must be between 1 and {max_page_size}")
