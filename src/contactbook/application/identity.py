"""Resolve an email-or-phone identifier to the stored user behind it."""

import logging

from contactbook.application.dto import Principal
from contactbook.application.ports import UserRepository
from contactbook.domain import ContactBookError, ErrorKind, IdentifierKind, classify

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Single lookup path used by every auth and contact operation."""

    def __init__(self, users: UserRepository) -> None:
        self._users = users

    def resolve(self, identifier: str) -> Principal:
        logger.debug("Looking up user by identifier: %s", identifier)
        kind = classify(identifier)
        if kind is IdentifierKind.EMAIL:
            user = self._users.find_by_email(identifier)
        elif kind is IdentifierKind.PHONE:
            user = self._users.find_by_phone(identifier)
        else:
            logger.warning("User lookup failed: invalid identifier format: %s", identifier)
            raise ContactBookError(
                ErrorKind.INVALID_IDENTIFIER,
                "Invalid identifier. Must be a valid email or phone number.",
            )

        if user is None:
            logger.warning("User lookup failed: no user for identifier: %s", identifier)
            raise ContactBookError(
                ErrorKind.USER_NOT_FOUND,
                f"User not found with identifier: {identifier}",
            )
        return Principal(
            identifier=user.identifier,
            password_hash=user.password_hash,
            user=user,
        )
