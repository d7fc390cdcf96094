"""Classify a login identifier as an email address or a phone number."""

import re
from enum import Enum

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+$")
# International "+92-DDD-DDDDDDD" or local "03DDDDDDDDD".
PHONE_PATTERN = re.compile(r"^(?:\+92-\d{3}-\d{7}|03\d{9})$")


class IdentifierKind(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    INVALID = "invalid"


def is_valid_email(identifier: str | None) -> bool:
    return isinstance(identifier, str) and EMAIL_PATTERN.fullmatch(identifier) is not None


def is_valid_phone(identifier: str | None) -> bool:
    return isinstance(identifier, str) and PHONE_PATTERN.fullmatch(identifier) is not None


def classify(identifier: str | None) -> IdentifierKind:
    """Return EMAIL, PHONE or INVALID. Case-sensitive; no trimming or normalization."""
    if is_valid_email(identifier):
        return IdentifierKind.EMAIL
    if is_valid_phone(identifier):
        return IdentifierKind.PHONE
    return IdentifierKind.INVALID
