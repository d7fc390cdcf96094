"""Domain entities: User, Contact and its ContactEmail / ContactPhone children."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from contactbook.domain.errors import ContactBookError, ErrorKind
from contactbook.domain.identifier import is_valid_email, is_valid_phone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def clean_optional(value: str | None) -> str | None:
    """Strip whitespace; blank becomes None."""
    if value is None:
        return None
    return value.strip() or None


@dataclass(frozen=True)
class User:
    """
    A registered account. Exactly one of email / phone is the login identifier.
    The password is only ever held as a hash.
    """

    id: str = field(default_factory=_new_id)
    email: str | None = None
    phone: str | None = None
    password_hash: str = ""
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if (self.email is None) == (self.phone is None):
            raise ValueError("User must have exactly one of email or phone.")
        if not self.password_hash:
            raise ValueError("User must have a password hash.")

    @property
    def identifier(self) -> str:
        return self.email if self.email is not None else self.phone


@dataclass(frozen=True)
class ContactEmail:
    label: str | None = None
    email: str = ""

    def __post_init__(self):
        email = (self.email or "").strip()
        if not email:
            raise ContactBookError(ErrorKind.INVALID_CONTACT, "Email address is required.")
        if not is_valid_email(email):
            raise ContactBookError(ErrorKind.INVALID_CONTACT, f"Invalid email address: {email}")
        object.__setattr__(self, "email", email)


@dataclass(frozen=True)
class ContactPhone:
    label: str | None = None
    phone_number: str = ""

    def __post_init__(self):
        phone_number = (self.phone_number or "").strip()
        if not phone_number:
            raise ContactBookError(ErrorKind.INVALID_CONTACT, "Phone number is required.")
        if not is_valid_phone(phone_number):
            raise ContactBookError(
                ErrorKind.INVALID_CONTACT, f"Invalid phone number: {phone_number}"
            )
        object.__setattr__(self, "phone_number", phone_number)


@dataclass(frozen=True)
class Contact:
    """
    A personal contact owned by exactly one User.
    Emails and phones are owned by the contact; replacing a collection drops the old children.
    The at-least-one-email-or-phone rule is checked by the store on save
    (see require_contact_details), not at construction.
    """

    owner_id: str
    first_name: str
    last_name: str | None = None
    title: str | None = None
    emails: tuple[ContactEmail, ...] = ()
    phones: tuple[ContactPhone, ...] = ()
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if not self.owner_id:
            raise ValueError("Contact must have an owner.")
        first_name = (self.first_name or "").strip()
        if not first_name:
            raise ContactBookError(ErrorKind.INVALID_CONTACT, "First name is required.")
        object.__setattr__(self, "first_name", first_name)
        object.__setattr__(self, "last_name", clean_optional(self.last_name))
        object.__setattr__(self, "title", clean_optional(self.title))
        object.__setattr__(self, "emails", tuple(self.emails or ()))
        object.__setattr__(self, "phones", tuple(self.phones or ()))

    @property
    def name_key(self) -> tuple[str, str | None]:
        return (self.first_name, self.last_name)

    def require_contact_details(self) -> None:
        """Raise INVALID_CONTACT unless the contact has at least one email or phone."""
        if not self.emails and not self.phones:
            raise ContactBookError(
                ErrorKind.INVALID_CONTACT,
                "A contact must have at least one email or one phone number.",
            )
