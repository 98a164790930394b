"""Shared utilities used across booking and checkout validation."""

import re

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SWISS_MOBILE_PATTERN = re.compile(r"^(\+41|0041|0)7[5-9]\d{7}$")
SWISS_LANDLINE_PATTERN = re.compile(r"^(\+41|0041|0)[1-9]\d{8}$")
MIN_NAME_LENGTH = 2


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("079 123 45 67")
        '0791234567'
        >>> normalize_phone("+41 (79) 123-45-67")
        '+41791234567'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def is_valid_swiss_phone(value: str) -> bool:
    """Accept Swiss mobile and landline numbers in national or +41/0041 form."""
    cleaned = normalize_phone(value)
    return bool(SWISS_MOBILE_PATTERN.match(cleaned) or SWISS_LANDLINE_PATTERN.match(cleaned))


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def is_valid_name(value: str) -> bool:
    return len(value.strip()) >= MIN_NAME_LENGTH
