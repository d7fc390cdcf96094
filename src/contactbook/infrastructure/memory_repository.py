"""In-memory implementations of UserRepository and ContactRepository (no DB)."""

from collections.abc import Iterator
from contextlib import contextmanager

from contactbook.domain import Contact, ContactBookError, ErrorKind, User


class InMemoryUserRepository:
    """Stores users in memory. Enforces unique email and unique phone like the DB constraints."""

    def __init__(self) -> None:
        self._by_id: dict[str, User] = {}

    def find_by_email(self, email: str) -> User | None:
        return next((u for u in self._by_id.values() if u.email == email), None)

    def find_by_phone(self, phone: str) -> User | None:
        return next((u for u in self._by_id.values() if u.phone == phone), None)

    def save(self, user: User) -> User:
        for other in self._by_id.values():
            if other.id == user.id:
                continue
            if (user.email is not None and other.email == user.email) or (
                user.phone is not None and other.phone == user.phone
            ):
                raise ContactBookError(
                    ErrorKind.DUPLICATE_IDENTIFIER,
                    "Identifier already registered",
                )
        self._by_id[user.id] = user
        return user


class InMemoryContactRepository:
    """Stores contacts in memory. Order preserved by insertion."""

    def __init__(self) -> None:
        self._by_id: dict[str, Contact] = {}
        self._order: list[str] = []

    def _owned(self, owner_id: str) -> list[Contact]:
        return [
            self._by_id[cid]
            for cid in self._order
            if self._by_id[cid].owner_id == owner_id
        ]

    @staticmethod
    def _page(contacts: list[Contact], page: int, size: int) -> list[Contact]:
        start = page * size
        return contacts[start : start + size]

    def get_by_id(self, contact_id: str) -> Contact | None:
        return self._by_id.get(contact_id)

    def list_by_owner(self, owner_id: str, page: int, size: int) -> list[Contact]:
        return self._page(self._owned(owner_id), page, size)

    def search_by_owner(
        self, owner_id: str, term: str, page: int, size: int
    ) -> list[Contact]:
        needle = term.lower()
        matches = [
            c
            for c in self._owned(owner_id)
            if needle in c.first_name.lower() or needle in (c.last_name or "").lower()
        ]
        return self._page(matches, page, size)

    def exists_by_owner_and_name(
        self, owner_id: str, first_name: str, last_name: str | None
    ) -> bool:
        return self._find_by_name(owner_id, first_name, last_name) is not None

    def _find_by_name(
        self, owner_id: str, first_name: str, last_name: str | None
    ) -> Contact | None:
        for contact in self._owned(owner_id):
            if contact.name_key == (first_name, last_name):
                return contact
        return None

    def save(self, contact: Contact) -> Contact:
        contact.require_contact_details()
        clash = self._find_by_name(contact.owner_id, contact.first_name, contact.last_name)
        if clash is not None and clash.id != contact.id:
            raise ContactBookError(
                ErrorKind.DUPLICATE_CONTACT,
                "Contact already exists with same name for this user",
            )
        if contact.id not in self._by_id:
            self._order.append(contact.id)
        self._by_id[contact.id] = contact
        return contact

    def delete(self, contact: Contact) -> bool:
        if self._by_id.pop(contact.id, None) is None:
            return False
        self._order.remove(contact.id)
        return True

    @contextmanager
    def unit_of_work(self) -> Iterator["InMemoryContactRepository"]:
        """Restore the pre-call state if the block raises."""
        by_id, order = dict(self._by_id), list(self._order)
        try:
            yield self
        except BaseException:
            self._by_id, self._order = by_id, order
            raise
