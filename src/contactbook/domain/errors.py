"""Error taxonomy shared by every layer.

Failures are raised as a single exception type tagged with an ErrorKind; the
HTTP boundary maps each kind to a status code.
"""

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_IDENTIFIER_FORMAT = "invalid_identifier_format"
    INVALID_IDENTIFIER = "invalid_identifier"
    DUPLICATE_IDENTIFIER = "duplicate_identifier"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_PASSWORD = "invalid_password"
    USER_NOT_FOUND = "user_not_found"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DUPLICATE_CONTACT = "duplicate_contact"
    INVALID_CONTACT = "invalid_contact"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_INVALID_SIGNATURE = "token_invalid_signature"
    TOKEN_MALFORMED = "token_malformed"
    UNEXPECTED = "unexpected"


class ContactBookError(Exception):
    """Raised where a failure is detected; propagates unchanged to the boundary."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"ContactBookError({self.kind.name}, {self.message!r})"
