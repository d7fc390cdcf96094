"""Domain layer: entities, identifier rules and the error taxonomy. No dependencies on outer layers."""

from contactbook.domain.entities import Contact, ContactEmail, ContactPhone, User
from contactbook.domain.errors import ContactBookError, ErrorKind
from contactbook.domain.identifier import IdentifierKind, classify

__all__ = [
    "Contact",
    "ContactBookError",
    "ContactEmail",
    "ContactPhone",
    "ErrorKind",
    "IdentifierKind",
    "User",
    "classify",
]
