"""Runtime settings read from the environment (.env is loaded by the API entrypoint)."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta

from contactbook.infrastructure.passwords import DEFAULT_ROUNDS

DEFAULT_JWT_EXPIRATION_MS = 3_600_000

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    jwt_expiration: timedelta = timedelta(milliseconds=DEFAULT_JWT_EXPIRATION_MS)
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "password"
    bcrypt_rounds: int = DEFAULT_ROUNDS
    conceal_foreign_contacts: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        def get(name: str, default: str = "") -> str:
            return (env.get(name) or default).strip()

        secret = get("JWT_SECRET")
        if not secret:
            raise ValueError("JWT_SECRET must be set (base64, at least 32 bytes decoded)")
        return cls(
            jwt_secret=secret,
            jwt_expiration=timedelta(
                milliseconds=int(get("JWT_EXPIRATION_MS", str(DEFAULT_JWT_EXPIRATION_MS)))
            ),
            neo4j_uri=get("NEO4J_URI", "bolt://localhost:7687"),
            neo4j_user=get("NEO4J_USER", "neo4j"),
            neo4j_password=get("NEO4J_PASSWORD", "password"),
            bcrypt_rounds=int(get("BCRYPT_ROUNDS", str(DEFAULT_ROUNDS))),
            conceal_foreign_contacts=get("CONCEAL_FOREIGN_CONTACTS").lower() in _TRUE_VALUES,
        )
