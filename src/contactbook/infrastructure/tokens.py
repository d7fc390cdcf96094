"""Signed, time-limited bearer tokens (JWT, HMAC) carrying the canonical identifier as subject.

Expired, tampered and unparseable tokens raise; a valid token for a different
subject is only reported as False by validate().
"""

import base64
import binascii
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from contactbook.application.dto import Principal
from contactbook.domain import ContactBookError, ErrorKind

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=1)

# Minimum HMAC key size per algorithm (bytes), per RFC 7518 section 3.2.
_MIN_KEY_BYTES = {"HS256": 32, "HS384": 48, "HS512": 64}

_RESERVED_CLAIMS = ("sub", "iat", "exp")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def decode_secret(secret: str, algorithm: str = "HS256") -> bytes:
    """Decode a base64 secret and check it is long enough for the algorithm."""
    if algorithm not in _MIN_KEY_BYTES:
        raise ValueError(f"Unsupported signing algorithm: {algorithm}")
    try:
        key = base64.b64decode((secret or "").strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("JWT secret must be base64-encoded.") from exc
    if len(key) < _MIN_KEY_BYTES[algorithm]:
        raise ValueError(
            f"JWT secret must decode to at least {_MIN_KEY_BYTES[algorithm]} bytes for {algorithm}."
        )
    return key


class TokenIssuer:
    def __init__(
        self,
        secret: str,
        ttl: timedelta = DEFAULT_TTL,
        *,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if ttl <= timedelta(0):
            raise ValueError("Token TTL must be positive.")
        self._key = decode_secret(secret, algorithm)
        self._ttl = ttl
        self._algorithm = algorithm
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, principal: Principal, extra_claims: dict[str, Any] | None = None) -> str:
        now = self._clock()
        claims = {k: v for k, v in (extra_claims or {}).items() if k not in _RESERVED_CLAIMS}
        claims["sub"] = principal.identifier
        claims["iat"] = int(now.timestamp())
        claims["exp"] = int((now + self._ttl).timestamp())
        return jwt.encode(claims, self._key, algorithm=self._algorithm)

    def validate(self, token: str, expected_identifier: str) -> bool:
        """True if the token belongs to expected_identifier. Raises on expiry, bad signature or garbage."""
        return self.extract_claims(token)["sub"] == expected_identifier

    def extract_identifier(self, token: str) -> str:
        return self.extract_claims(token)["sub"]

    def extract_expiration(self, token: str) -> datetime:
        return datetime.fromtimestamp(self.extract_claims(token)["exp"], tz=timezone.utc)

    def extract_claims(self, token: str) -> dict[str, Any]:
        """Decode and verify a token. Expiry is judged by the issuer's clock, not wall time."""
        try:
            claims = jwt.decode(
                token,
                self._key,
                algorithms=[self._algorithm],
                options={
                    "require": list(_RESERVED_CLAIMS),
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except jwt.InvalidSignatureError as exc:
            logger.warning("Rejected token with invalid signature")
            raise ContactBookError(
                ErrorKind.TOKEN_INVALID_SIGNATURE, "Token signature is invalid."
            ) from exc
        except jwt.InvalidTokenError as exc:
            logger.warning("Rejected malformed token: %s", exc)
            raise ContactBookError(ErrorKind.TOKEN_MALFORMED, "Token is malformed.") from exc

        exp = claims["exp"]
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            logger.warning("Rejected token with non-numeric expiration")
            raise ContactBookError(ErrorKind.TOKEN_MALFORMED, "Token is malformed.")
        if exp <= self._clock().timestamp():
            logger.info("Rejected expired token")
            raise ContactBookError(ErrorKind.TOKEN_EXPIRED, "Token has expired.")
        return claims
