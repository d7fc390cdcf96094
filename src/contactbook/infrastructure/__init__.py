"""Infrastructure layer: concrete implementations of application ports."""

from contactbook.infrastructure.memory_repository import (
    InMemoryContactRepository,
    InMemoryUserRepository,
)
from contactbook.infrastructure.passwords import BcryptPasswordHasher
from contactbook.infrastructure.persistence.neo4j_repository import (
    Neo4jContactRepository,
    Neo4jUserRepository,
    ensure_constraints,
)
from contactbook.infrastructure.tokens import TokenIssuer

__all__ = [
    "BcryptPasswordHasher",
    "InMemoryContactRepository",
    "InMemoryUserRepository",
    "Neo4jContactRepository",
    "Neo4jUserRepository",
    "TokenIssuer",
    "ensure_constraints",
]
