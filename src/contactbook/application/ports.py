"""Application ports (interfaces). Implemented by infrastructure adapters."""

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Protocol

from contactbook.application.dto import Principal
from contactbook.domain import Contact, User


class UserRepository(Protocol):
    """Persists users. Email and phone are each unique across users."""

    def find_by_email(self, email: str) -> User | None:
        ...

    def find_by_phone(self, phone: str) -> User | None:
        ...

    def save(self, user: User) -> User:
        """Insert or replace by id. Raises DUPLICATE_IDENTIFIER on a uniqueness clash."""
        ...


class ContactRepository(Protocol):
    """Persists contact aggregates (contact + emails + phones), scoped by owner."""

    def get_by_id(self, contact_id: str) -> Contact | None:
        """Return the contact with the given id regardless of owner, or None."""
        ...

    def list_by_owner(self, owner_id: str, page: int, size: int) -> list[Contact]:
        """Return one zero-based page of the owner's contacts in stable store order."""
        ...

    def search_by_owner(
        self, owner_id: str, term: str, page: int, size: int
    ) -> list[Contact]:
        """Like list_by_owner, limited to first or last name containing term (case-insensitive)."""
        ...

    def exists_by_owner_and_name(
        self, owner_id: str, first_name: str, last_name: str | None
    ) -> bool:
        ...

    def save(self, contact: Contact) -> Contact:
        """Insert or replace the aggregate. Old children are removed.

        Must call contact.require_contact_details() before writing.
        """
        ...

    def delete(self, contact: Contact) -> bool:
        """Delete the contact and its children. Returns False if it was already gone."""
        ...

    def unit_of_work(self) -> AbstractContextManager["ContactRepository"]:
        """Yield a repository whose calls share one transaction, committed on clean exit."""
        ...


class PasswordHasher(Protocol):
    def hash(self, plaintext: str) -> str:
        ...

    def matches(self, plaintext: str, digest: str) -> bool:
        """Constant-time comparison of plaintext against a stored digest."""
        ...


class TokenCodec(Protocol):
    def issue(self, principal: Principal, extra_claims: dict[str, Any] | None = None) -> str:
        ...

    def validate(self, token: str, expected_identifier: str) -> bool:
        ...

    def extract_identifier(self, token: str) -> str:
        ...

    def extract_expiration(self, token: str) -> datetime:
        ...
