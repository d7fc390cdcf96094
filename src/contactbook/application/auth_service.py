"""Registration, login, password change and bearer-token authentication."""

import dataclasses
import logging

from contactbook.application.dto import AuthToken, Principal, UserView
from contactbook.application.identity import IdentityResolver
from contactbook.application.ports import PasswordHasher, TokenCodec, UserRepository
from contactbook.domain import ContactBookError, ErrorKind, IdentifierKind, User, classify

logger = logging.getLogger(__name__)


class AuthService:
    """Stateless: every call stands alone, the token carries the session."""

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenCodec,
        *,
        resolver: IdentityResolver | None = None,
    ) -> None:
        self._users = users
        self._hasher = hasher
        self._tokens = tokens
        self._resolver = resolver or IdentityResolver(users)

    @property
    def resolver(self) -> IdentityResolver:
        return self._resolver

    def register(self, identifier: str, password: str) -> UserView:
        """Create a user keyed by email or phone. Not idempotent: a retry is a duplicate."""
        logger.info("Attempting to register new user with identifier: %s", identifier)
        kind = classify(identifier)
        if kind is IdentifierKind.EMAIL:
            taken = self._users.find_by_email(identifier) is not None
            field_name = "email"
        elif kind is IdentifierKind.PHONE:
            taken = self._users.find_by_phone(identifier) is not None
            field_name = "phone"
        else:
            logger.warning("Registration failed: invalid identifier format: %s", identifier)
            raise ContactBookError(
                ErrorKind.INVALID_IDENTIFIER_FORMAT,
                "Invalid identifier. Must be a valid email or phone number.",
            )

        if taken:
            logger.warning("Registration failed: %s already registered: %s", field_name, identifier)
            raise ContactBookError(
                ErrorKind.DUPLICATE_IDENTIFIER,
                f"{field_name.capitalize()} already registered",
            )

        user = User(
            email=identifier if kind is IdentifierKind.EMAIL else None,
            phone=identifier if kind is IdentifierKind.PHONE else None,
            password_hash=self._hasher.hash(password),
        )
        saved = self._users.save(user)
        logger.info("Successfully registered user with id: %s", saved.id)
        return UserView.from_user(saved)

    def login(self, identifier: str, password: str) -> AuthToken:
        logger.info("Attempting to login for user: %s", identifier)
        principal = self._resolver.resolve(identifier)
        if not self._hasher.matches(password, principal.password_hash):
            logger.warning("Login failed: incorrect password for user '%s'", identifier)
            raise ContactBookError(
                ErrorKind.INVALID_CREDENTIALS,
                "Unable to login. Incorrect password.",
            )
        token = self._tokens.issue(principal)
        logger.info("User '%s' logged in successfully", principal.identifier)
        return AuthToken(token=token, username=principal.identifier)

    def change_password(self, identifier: str, old_password: str, new_password: str) -> bool:
        logger.info("Attempting to change password for user: %s", identifier)
        principal = self._resolver.resolve(identifier)
        if not self._hasher.matches(old_password, principal.password_hash):
            logger.warning("Password change failed: old password incorrect for user: %s", identifier)
            raise ContactBookError(ErrorKind.INVALID_CREDENTIALS, "Old password is incorrect")

        updated = dataclasses.replace(
            principal.user, password_hash=self._hasher.hash(new_password)
        )
        self._users.save(updated)
        logger.info("Password successfully changed for user: %s", identifier)
        return True

    def profile(self, identifier: str) -> UserView:
        return UserView.from_user(self._resolver.resolve(identifier).user)

    def authenticate(self, token: str) -> Principal:
        """Resolve the caller behind a bearer token.

        Expired, tampered or unparseable tokens raise the token error kinds; a
        subject that no longer resolves raises the resolver's errors.
        """
        identifier = self._tokens.extract_identifier(token)
        principal = self._resolver.resolve(identifier)
        if not self._tokens.validate(token, principal.identifier):
            logger.warning("Token subject does not match resolved user: %s", identifier)
            raise ContactBookError(ErrorKind.TOKEN_MALFORMED, "Token does not match user.")
        return principal
