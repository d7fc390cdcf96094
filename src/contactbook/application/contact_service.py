"""Owner-scoped contact CRUD, search and the duplicate-name guard."""

import dataclasses
import logging

from contactbook.application.dto import ContactData, ContactView, Principal
from contactbook.application.identity import IdentityResolver
from contactbook.application.ports import ContactRepository
from contactbook.domain import Contact, ContactBookError, ErrorKind

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


class ContactService:
    """Every call resolves the acting user first, then loads and authorizes the target contact.

    conceal_foreign_contacts: when True, another user's contact is reported as
    RESOURCE_NOT_FOUND instead of UNAUTHORIZED_ACCESS, so callers cannot probe
    for ids they do not own.
    """

    def __init__(
        self,
        repository: ContactRepository,
        resolver: IdentityResolver,
        *,
        conceal_foreign_contacts: bool = False,
    ) -> None:
        self._repo = repository
        self._resolver = resolver
        self._conceal_foreign_contacts = conceal_foreign_contacts

    def list_contacts(
        self,
        identifier: str,
        search_term: str | None = None,
        page: int = 0,
        size: int = DEFAULT_PAGE_SIZE,
    ) -> list[ContactView]:
        """Return one page of the caller's contacts, filtered by name when a term is given."""
        if page < 0:
            raise ValueError("page must be >= 0")
        if size < 1:
            raise ValueError("size must be >= 1")
        logger.debug(
            "Fetching contacts for user '%s', search: '%s', page: %d, size: %d",
            identifier,
            search_term or "N/A",
            page,
            size,
        )
        principal = self._resolver.resolve(identifier)
        owner_id = principal.user.id

        if search_term and search_term.strip():
            contacts = self._repo.search_by_owner(owner_id, search_term.strip(), page, size)
        else:
            contacts = self._repo.list_by_owner(owner_id, page, size)

        logger.info(
            "Retrieved %d contacts for user '%s' (page: %d, search: '%s')",
            len(contacts),
            identifier,
            page,
            search_term or "N/A",
        )
        return [ContactView.from_contact(c) for c in contacts]

    def create_contact(self, identifier: str, data: ContactData) -> ContactView:
        principal = self._resolver.resolve(identifier)
        contact = Contact(
            owner_id=principal.user.id,
            first_name=data.first_name,
            last_name=data.last_name,
            title=data.title,
            emails=tuple(data.emails),
            phones=tuple(data.phones),
        )
        logger.info(
            "User %s attempting to create contact: %s %s",
            identifier,
            contact.first_name,
            contact.last_name or "",
        )
        if self._repo.exists_by_owner_and_name(
            contact.owner_id, contact.first_name, contact.last_name
        ):
            logger.warning(
                "Creation failed: duplicate contact name for user '%s': %s %s",
                identifier,
                contact.first_name,
                contact.last_name or "",
            )
            raise ContactBookError(
                ErrorKind.DUPLICATE_CONTACT,
                "Contact already exists with same name for this user",
            )

        saved = self._repo.save(contact)
        logger.info("Created contact %s for user %s", saved.id, identifier)
        return ContactView.from_contact(saved)

    def get_contact(self, identifier: str, contact_id: str) -> ContactView:
        principal = self._resolver.resolve(identifier)
        contact = self._load_owned(self._repo, principal, contact_id, "view")
        return ContactView.from_contact(contact)

    def update_contact(
        self, identifier: str, contact_id: str, data: ContactData
    ) -> ContactView:
        """Replace names, title and both child collections wholesale.

        The duplicate-name query only runs when the (first, last) pair changes.
        """
        logger.info("User '%s' attempting to update contact %s", identifier, contact_id)
        principal = self._resolver.resolve(identifier)
        with self._repo.unit_of_work() as repo:
            existing = self._load_owned(repo, principal, contact_id, "update")
            updated = dataclasses.replace(
                existing,
                first_name=data.first_name,
                last_name=data.last_name,
                title=data.title,
                emails=tuple(data.emails),
                phones=tuple(data.phones),
            )
            if updated.name_key != existing.name_key and repo.exists_by_owner_and_name(
                updated.owner_id, updated.first_name, updated.last_name
            ):
                logger.warning(
                    "Update failed: new name '%s %s' is a duplicate for user '%s'",
                    updated.first_name,
                    updated.last_name or "",
                    identifier,
                )
                raise ContactBookError(
                    ErrorKind.DUPLICATE_CONTACT,
                    "A contact with this name already exists for your account.",
                )
            saved = repo.save(updated)
        logger.info("Updated contact %s for user '%s'", contact_id, identifier)
        return ContactView.from_contact(saved)

    def delete_contact(self, identifier: str, contact_id: str) -> bool:
        logger.info("User '%s' attempting to delete contact %s", identifier, contact_id)
        principal = self._resolver.resolve(identifier)
        with self._repo.unit_of_work() as repo:
            contact = self._load_owned(repo, principal, contact_id, "delete")
            deleted = repo.delete(contact)
        logger.info("Deleted contact %s for user '%s'", contact_id, identifier)
        return deleted

    def _load_owned(
        self,
        repo: ContactRepository,
        principal: Principal,
        contact_id: str,
        action: str,
    ) -> Contact:
        contact = repo.get_by_id(contact_id)
        if contact is None:
            logger.warning("%s failed: contact %s not found", action.capitalize(), contact_id)
            raise ContactBookError(ErrorKind.RESOURCE_NOT_FOUND, "Contact not found")
        if contact.owner_id != principal.user.id:
            logger.warning(
                "%s failed: user '%s' is not the owner of contact %s",
                action.capitalize(),
                principal.identifier,
                contact_id,
            )
            if self._conceal_foreign_contacts:
                raise ContactBookError(ErrorKind.RESOURCE_NOT_FOUND, "Contact not found")
            raise ContactBookError(
                ErrorKind.UNAUTHORIZED_ACCESS,
                "Unauthorized access to this contact",
            )
        return contact
