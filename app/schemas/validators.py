"""Custom validators and types."""

import re
from typing import Annotated

from pydantic import AfterValidator, EmailStr, Field

# International phone: optional +, 10-15 digits
# Allows optional spaces/dashes/parentheses
PHONE_PATTERN = re.compile(r"^\+?[0-9]{10,15}$")

# Tenant codes: letters, digits and dashes, e.g. "BSS" or "BSS-LHR-01"
CODE_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9\-]*$")


def validate_phone_number(value: str) -> str:
    """
    Validate and normalize a phone number.

    Accepts formats:
    - +923001234567
    - +92 300 1234567
    - +92-300-123-4567
    - 03001234567

    Returns the digits with an optional leading "+": +923001234567
    """
    # Remove spaces, dashes, parentheses
    normalized = re.sub(r"[\s\-\(\)]", "", value)

    if not PHONE_PATTERN.match(normalized):
        raise ValueError(
            "Invalid phone number. Use 10-15 digits, optionally prefixed by + (e.g., +92 300 1234567)"
        )

    return normalized


def normalize_email(value: str) -> str:
    """Emails are compared case-insensitively, so store them lowercased."""
    return value.strip().lower()


def validate_code(value: str) -> str:
    """Upper-case a tenant code and check its characters."""
    normalized = value.strip().upper()
    if not CODE_PATTERN.match(normalized):
        raise ValueError("Code may only contain letters, digits and dashes")
    return normalized


# Annotated type for phone number validation
PhoneNumber = Annotated[
    str,
    Field(min_length=9, max_length=25),
    AfterValidator(validate_phone_number),
]

Email = Annotated[EmailStr, AfterValidator(normalize_email)]

TenantCode = Annotated[
    str,
    Field(min_length=2, max_length=50),
    AfterValidator(validate_code),
]
