"""Neo4j implementations of UserRepository and ContactRepository.

Graph: (u:User {id, email, phone, password_hash, created_at})-[:OWNS]->(c:Contact {id, owner_id, ...}),
(c)-[:HAS_EMAIL]->(:ContactEmail {label, email, position}),
(c)-[:HAS_PHONE]->(:ContactPhone {label, phone_number, position}).
Children are rewritten on every save; position keeps their order.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from neo4j.exceptions import ConstraintError

from contactbook.domain import (
    Contact,
    ContactBookError,
    ContactEmail,
    ContactPhone,
    ErrorKind,
    User,
)

_CONSTRAINT_QUERIES = (
    """
    CREATE CONSTRAINT user_id_unique IF NOT EXISTS
    FOR (u:User) REQUIRE u.id IS UNIQUE
    """,
    """
    CREATE CONSTRAINT user_email_unique IF NOT EXISTS
    FOR (u:User) REQUIRE u.email IS UNIQUE
    """,
    """
    CREATE CONSTRAINT user_phone_unique IF NOT EXISTS
    FOR (u:User) REQUIRE u.phone IS UNIQUE
    """,
    """
    CREATE CONSTRAINT contact_id_unique IF NOT EXISTS
    FOR (c:Contact) REQUIRE c.id IS UNIQUE
    """,
    # Only applies when last_name is set; absent properties are not constrained.
    """
    CREATE CONSTRAINT contact_owner_name_unique IF NOT EXISTS
    FOR (c:Contact) REQUIRE (c.owner_id, c.first_name, c.last_name) IS UNIQUE
    """,
)

_FIND_USER_BY_EMAIL_QUERY = """
MATCH (u:User {email: $email})
RETURN u
"""

_FIND_USER_BY_PHONE_QUERY = """
MATCH (u:User {phone: $phone})
RETURN u
"""

_SAVE_USER_QUERY = """
MERGE (u:User {id: $id})
ON CREATE SET u.created_at = $created_at
SET u.email = $email,
    u.phone = $phone,
    u.password_hash = $password_hash
RETURN u
"""

# Appended to any query that has bound `c`; loads children in order.
_CONTACT_PROJECTION = """
OPTIONAL MATCH (c)-[:HAS_EMAIL]->(e:ContactEmail)
WITH c, e ORDER BY e.position
WITH c, collect(e {.label, .email}) AS emails
OPTIONAL MATCH (c)-[:HAS_PHONE]->(p:ContactPhone)
WITH c, emails, p ORDER BY p.position
WITH c, emails, collect(p {.label, .phone_number}) AS phones
RETURN c, emails, phones
ORDER BY c.created_at, c.id
"""

_GET_CONTACT_QUERY = (
    """
MATCH (c:Contact {id: $id})
"""
    + _CONTACT_PROJECTION
)

_LIST_CONTACTS_QUERY = (
    """
MATCH (c:Contact {owner_id: $owner_id})
WITH c ORDER BY c.created_at, c.id SKIP $skip LIMIT $limit
"""
    + _CONTACT_PROJECTION
)

_SEARCH_CONTACTS_QUERY = (
    """
MATCH (c:Contact {owner_id: $owner_id})
WHERE toLower(c.first_name) CONTAINS toLower($term)
   OR toLower(coalesce(c.last_name, '')) CONTAINS toLower($term)
WITH c ORDER BY c.created_at, c.id SKIP $skip LIMIT $limit
"""
    + _CONTACT_PROJECTION
)

_EXISTS_BY_NAME_QUERY = """
MATCH (c:Contact {owner_id: $owner_id, first_name: $first_name})
WHERE c.last_name = $last_name OR (c.last_name IS NULL AND $last_name IS NULL)
RETURN count(c) > 0 AS found
"""

_SAVE_CONTACT_QUERY = """
MATCH (u:User {id: $owner_id})
MERGE (c:Contact {id: $id})
ON CREATE SET c.created_at = $created_at
SET c.owner_id = $owner_id,
    c.first_name = $first_name,
    c.last_name = $last_name,
    c.title = $title
MERGE (u)-[:OWNS]->(c)
WITH c
OPTIONAL MATCH (c)-[:HAS_EMAIL|HAS_PHONE]->(old)
DETACH DELETE old
WITH DISTINCT c
FOREACH (e IN $emails |
    CREATE (c)-[:HAS_EMAIL]->(:ContactEmail {label: e.label, email: e.email, position: e.position}))
FOREACH (p IN $phones |
    CREATE (c)-[:HAS_PHONE]->(:ContactPhone {label: p.label, phone_number: p.phone_number, position: p.position}))
RETURN c.id AS id
"""

_DELETE_CONTACT_QUERY = """
MATCH (c:Contact {id: $id})
OPTIONAL MATCH (c)-[:HAS_EMAIL|HAS_PHONE]->(child)
WITH c, collect(child) AS children
FOREACH (x IN children | DETACH DELETE x)
DETACH DELETE c
RETURN count(*) AS deleted
"""


def ensure_constraints(driver) -> None:
    """Create uniqueness constraints for users and contacts if missing. Call at startup."""
    with driver.session() as session:
        for query in _CONSTRAINT_QUERIES:
            session.run(query)


def _datetime_to_iso(dt: datetime) -> str:
    return dt.isoformat()


def _iso_to_datetime(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _record_to_user(node) -> User:
    return User(
        id=node["id"],
        email=node.get("email"),
        phone=node.get("phone"),
        password_hash=node["password_hash"],
        created_at=_iso_to_datetime(node["created_at"]),
    )


def _record_to_contact(record) -> Contact:
    c = record["c"]
    return Contact(
        id=c["id"],
        owner_id=c["owner_id"],
        first_name=c["first_name"],
        last_name=c.get("last_name"),
        title=c.get("title"),
        emails=tuple(
            ContactEmail(label=e.get("label"), email=e["email"]) for e in record["emails"]
        ),
        phones=tuple(
            ContactPhone(label=p.get("label"), phone_number=p["phone_number"])
            for p in record["phones"]
        ),
        created_at=_iso_to_datetime(c["created_at"]),
    )


class Neo4jUserRepository:
    def __init__(self, driver: object) -> None:
        self._driver = driver

    def _find_one(self, query: str, **params) -> User | None:
        with self._driver.session() as session:
            record = session.run(query, **params).single()
        if not record:
            return None
        return _record_to_user(record["u"])

    def find_by_email(self, email: str) -> User | None:
        return self._find_one(_FIND_USER_BY_EMAIL_QUERY, email=email)

    def find_by_phone(self, phone: str) -> User | None:
        return self._find_one(_FIND_USER_BY_PHONE_QUERY, phone=phone)

    def save(self, user: User) -> User:
        try:
            with self._driver.session() as session:
                session.run(
                    _SAVE_USER_QUERY,
                    id=user.id,
                    email=user.email,
                    phone=user.phone,
                    password_hash=user.password_hash,
                    created_at=_datetime_to_iso(user.created_at),
                ).consume()
        except ConstraintError as exc:
            raise ContactBookError(
                ErrorKind.DUPLICATE_IDENTIFIER, "Identifier already registered"
            ) from exc
        return user


class _ContactQueries:
    """Contact queries over anything with run(query, **params): a session or a transaction."""

    def _run(self, query: str, **params) -> list:
        raise NotImplementedError

    def get_by_id(self, contact_id: str) -> Contact | None:
        records = self._run(_GET_CONTACT_QUERY, id=contact_id)
        return _record_to_contact(records[0]) if records else None

    def list_by_owner(self, owner_id: str, page: int, size: int) -> list[Contact]:
        records = self._run(
            _LIST_CONTACTS_QUERY, owner_id=owner_id, skip=page * size, limit=size
        )
        return [_record_to_contact(r) for r in records]

    def search_by_owner(
        self, owner_id: str, term: str, page: int, size: int
    ) -> list[Contact]:
        records = self._run(
            _SEARCH_CONTACTS_QUERY,
            owner_id=owner_id,
            term=term,
            skip=page * size,
            limit=size,
        )
        return [_record_to_contact(r) for r in records]

    def exists_by_owner_and_name(
        self, owner_id: str, first_name: str, last_name: str | None
    ) -> bool:
        records = self._run(
            _EXISTS_BY_NAME_QUERY,
            owner_id=owner_id,
            first_name=first_name,
            last_name=last_name,
        )
        return bool(records and records[0]["found"])

    def save(self, contact: Contact) -> Contact:
        contact.require_contact_details()
        try:
            records = self._run(
                _SAVE_CONTACT_QUERY,
                id=contact.id,
                owner_id=contact.owner_id,
                first_name=contact.first_name,
                last_name=contact.last_name,
                title=contact.title,
                created_at=_datetime_to_iso(contact.created_at),
                emails=[
                    {"label": e.label, "email": e.email, "position": i}
                    for i, e in enumerate(contact.emails)
                ],
                phones=[
                    {"label": p.label, "phone_number": p.phone_number, "position": i}
                    for i, p in enumerate(contact.phones)
                ],
            )
        except ConstraintError as exc:
            raise ContactBookError(
                ErrorKind.DUPLICATE_CONTACT,
                "Contact already exists with same name for this user",
            ) from exc
        if not records:
            raise ValueError(f"Owner {contact.owner_id} does not exist")
        return contact

    def delete(self, contact: Contact) -> bool:
        records = self._run(_DELETE_CONTACT_QUERY, id=contact.id)
        return bool(records and records[0]["deleted"])


class _Neo4jContactTransaction(_ContactQueries):
    def __init__(self, tx) -> None:
        self._tx = tx

    def _run(self, query: str, **params) -> list:
        return list(self._tx.run(query, **params))

    @contextmanager
    def unit_of_work(self) -> Iterator["_Neo4jContactTransaction"]:
        yield self


class Neo4jContactRepository(_ContactQueries):
    """Stores contact aggregates in Neo4j. Each call outside unit_of_work() is its own transaction."""

    def __init__(self, driver: object) -> None:
        self._driver = driver

    def _run(self, query: str, **params) -> list:
        with self._driver.session() as session:
            return list(session.run(query, **params))

    @contextmanager
    def unit_of_work(self) -> Iterator[_Neo4jContactTransaction]:
        """Run the block in one explicit transaction; roll back if it raises."""
        with self._driver.session() as session:
            with session.begin_transaction() as tx:
                yield _Neo4jContactTransaction(tx)
                tx.commit()
