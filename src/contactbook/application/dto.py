"""DTOs crossing the application boundary. Views never carry password hashes."""

from dataclasses import dataclass, field
from datetime import datetime

from contactbook.domain import Contact, ContactEmail, ContactPhone, User


@dataclass(frozen=True)
class Principal:
    """The resolved caller for one request.

    identifier is the stored email or phone that matched, used as the token subject.
    """

    identifier: str
    password_hash: str
    user: User


@dataclass(frozen=True)
class UserView:
    email: str | None
    phone: str | None

    @property
    def username(self) -> str | None:
        return self.email if self.email is not None else self.phone

    @classmethod
    def from_user(cls, user: User) -> "UserView":
        return cls(email=user.email, phone=user.phone)


@dataclass(frozen=True)
class AuthToken:
    """Result of a successful login: bearer token plus the canonical identifier."""

    token: str
    username: str


@dataclass(frozen=True)
class ContactData:
    """Caller-supplied contact fields for create and update."""

    first_name: str
    last_name: str | None = None
    title: str | None = None
    emails: tuple[ContactEmail, ...] = field(default=())
    phones: tuple[ContactPhone, ...] = field(default=())


@dataclass(frozen=True)
class ContactView:
    id: str
    first_name: str
    last_name: str | None
    title: str | None
    emails: tuple[ContactEmail, ...]
    phones: tuple[ContactPhone, ...]
    created_at: datetime

    @classmethod
    def from_contact(cls, contact: Contact) -> "ContactView":
        return cls(
            id=contact.id,
            first_name=contact.first_name,
            last_name=contact.last_name,
            title=contact.title,
            emails=contact.emails,
            phones=contact.phones,
            created_at=contact.created_at,
        )
