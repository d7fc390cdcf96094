"""bcrypt implementation of PasswordHasher."""

import bcrypt

from contactbook.domain import ContactBookError, ErrorKind

DEFAULT_ROUNDS = 12

# bcrypt only reads the first 72 bytes of its input; bcrypt>=5 refuses longer ones.
MAX_PASSWORD_BYTES = 72


def password_too_long(plaintext: str) -> bool:
    return len(plaintext.encode("utf-8")) > MAX_PASSWORD_BYTES


class BcryptPasswordHasher:
    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self._rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Raises INVALID_PASSWORD for passwords over MAX_PASSWORD_BYTES."""
        if password_too_long(plaintext):
            raise ContactBookError(
                ErrorKind.INVALID_PASSWORD,
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes.",
            )
        digest = bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(self._rounds))
        return digest.decode("ascii")

    def matches(self, plaintext: str, digest: str) -> bool:
        # Nothing longer than the limit was ever hashed, so it cannot match.
        if not digest or password_too_long(plaintext):
            return False
        return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("ascii"))
