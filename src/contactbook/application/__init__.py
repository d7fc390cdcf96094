"""Application layer: use cases, ports, and DTOs. Depends only on domain."""

from contactbook.application.auth_service import AuthService
from contactbook.application.contact_service import ContactService
from contactbook.application.dto import (
    AuthToken,
    ContactData,
    ContactView,
    Principal,
    UserView,
)
from contactbook.application.identity import IdentityResolver
from contactbook.application.ports import (
    ContactRepository,
    PasswordHasher,
    TokenCodec,
    UserRepository,
)

__all__ = [
    "AuthService",
    "AuthToken",
    "ContactData",
    "ContactRepository",
    "ContactService",
    "ContactView",
    "IdentityResolver",
    "PasswordHasher",
    "Principal",
    "TokenCodec",
    "UserRepository",
    "UserView",
]
