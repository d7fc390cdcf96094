"""
Contactbook core: clean-architecture layout.

- domain: entities (User, Contact, ContactEmail, ContactPhone), identifier rules, errors.
- application: use cases (IdentityResolver, AuthService, ContactService), ports, DTOs.
- infrastructure: adapters (in-memory and Neo4j repositories, bcrypt hasher, JWT issuer).
"""

from contactbook.application import (
    AuthService,
    AuthToken,
    ContactData,
    ContactService,
    ContactView,
    IdentityResolver,
    Principal,
    UserView,
)
from contactbook.domain import (
    Contact,
    ContactBookError,
    ContactEmail,
    ContactPhone,
    ErrorKind,
    User,
)
from contactbook.infrastructure import (
    BcryptPasswordHasher,
    InMemoryContactRepository,
    InMemoryUserRepository,
    Neo4jContactRepository,
    Neo4jUserRepository,
    TokenIssuer,
)

__all__ = [
    "AuthService",
    "AuthToken",
    "BcryptPasswordHasher",
    "Contact",
    "ContactBookError",
    "ContactData",
    "ContactEmail",
    "ContactPhone",
    "ContactService",
    "ContactView",
    "ErrorKind",
    "IdentityResolver",
    "InMemoryContactRepository",
    "InMemoryUserRepository",
    "Neo4jContactRepository",
    "Neo4jUserRepository",
    "Principal",
    "TokenIssuer",
    "User",
    "UserView",
]
