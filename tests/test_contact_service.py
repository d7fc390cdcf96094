"""Unit tests for ContactService. In-memory repositories only."""

import pytest

from contactbook.application import ContactData, ContactService, IdentityResolver
from contactbook.domain import ContactBookError, ContactEmail, ContactPhone, ErrorKind, User
from contactbook.infrastructure import InMemoryContactRepository, InMemoryUserRepository

ALICE = "alice@mail.com"
BOB = "03001234567"


class CountingContactRepository(InMemoryContactRepository):
    """Counts duplicate-name queries."""

    def __init__(self) -> None:
        super().__init__()
        self.name_checks = 0

    def exists_by_owner_and_name(self, owner_id, first_name, last_name):
        self.name_checks += 1
        return super().exists_by_owner_and_name(owner_id, first_name, last_name)


def _service(
    repo: InMemoryContactRepository | None = None, **kwargs
) -> ContactService:
    users = InMemoryUserRepository()
    users.save(User(email=ALICE, password_hash="h"))
    users.save(User(phone=BOB, password_hash="h"))
    return ContactService(
        repo if repo is not None else InMemoryContactRepository(),
        IdentityResolver(users),
        **kwargs,
    )


def _data(first="Jane", last="Doe", title=None, emails=None, phones=None) -> ContactData:
    return ContactData(
        first_name=first,
        last_name=last,
        title=title,
        emails=tuple(emails) if emails is not None else (ContactEmail("work", "jane@work.com"),),
        phones=tuple(phones) if phones is not None else (),
    )


def test_create_then_get() -> None:
    service = _service()
    created = service.create_contact(
        ALICE,
        _data(title="CTO", phones=[ContactPhone("mobile", "+92-300-7654321")]),
    )
    assert created.first_name == "Jane"
    assert created.last_name == "Doe"
    assert created.title == "CTO"
    assert created.emails == (ContactEmail("work", "jane@work.com"),)
    assert created.phones == (ContactPhone("mobile", "+92-300-7654321"),)

    fetched = service.get_contact(ALICE, created.id)
    assert fetched == created


def test_create_duplicate_name_same_owner_fails() -> None:
    service = _service()
    service.create_contact(ALICE, _data())
    with pytest.raises(ContactBookError) as exc:
        service.create_contact(ALICE, _data(emails=[ContactEmail("home", "jd@home.com")]))
    assert exc.value.kind is ErrorKind.DUPLICATE_CONTACT
    assert len(service.list_contacts(ALICE)) == 1


def test_same_name_different_owners_allowed() -> None:
    service = _service()
    service.create_contact(ALICE, _data())
    service.create_contact(BOB, _data())
    assert len(service.list_contacts(ALICE)) == 1
    assert len(service.list_contacts(BOB)) == 1


def test_name_match_is_case_sensitive() -> None:
    service = _service()
    service.create_contact(ALICE, _data())
    service.create_contact(ALICE, _data(first="jane"))
    assert len(service.list_contacts(ALICE)) == 2


def test_missing_last_name_counts_as_a_name() -> None:
    service = _service()
    service.create_contact(ALICE, _data(last=None))
    with pytest.raises(ContactBookError) as exc:
        service.create_contact(ALICE, _data(last="  "))
    assert exc.value.kind is ErrorKind.DUPLICATE_CONTACT
    service.create_contact(ALICE, _data(last="Doe"))


def test_create_without_email_or_phone_fails() -> None:
    service = _service()
    with pytest.raises(ContactBookError) as exc:
        service.create_contact(ALICE, _data(emails=[], phones=[]))
    assert exc.value.kind is ErrorKind.INVALID_CONTACT
    assert service.list_contacts(ALICE) == []


def test_create_with_only_phone_allowed() -> None:
    service = _service()
    created = service.create_contact(
        ALICE, _data(emails=[], phones=[ContactPhone("home", "03111111111")])
    )
    assert created.emails == ()


def test_unknown_caller_fails() -> None:
    service = _service()
    with pytest.raises(ContactBookError) as exc:
        service.create_contact("ghost@mail.com", _data())
    assert exc.value.kind is ErrorKind.USER_NOT_FOUND
    with pytest.raises(ContactBookError) as exc:
        service.list_contacts("ghost")
    assert exc.value.kind is ErrorKind.INVALID_IDENTIFIER


def test_list_is_owner_scoped_and_paginated() -> None:
    service = _service()
    for i in range(5):
        service.create_contact(ALICE, _data(first=f"Contact{i}"))
    service.create_contact(BOB, _data(first="BobsFriend"))

    first_page = service.list_contacts(ALICE, page=0, size=2)
    second_page = service.list_contacts(ALICE, page=1, size=2)
    last_page = service.list_contacts(ALICE, page=2, size=2)
    assert [c.first_name for c in first_page] == ["Contact0", "Contact1"]
    assert [c.first_name for c in second_page] == ["Contact2", "Contact3"]
    assert [c.first_name for c in last_page] == ["Contact4"]
    assert service.list_contacts(ALICE, page=3, size=2) == []


def test_list_rejects_bad_paging() -> None:
    service = _service()
    with pytest.raises(ValueError):
        service.list_contacts(ALICE, page=-1)
    with pytest.raises(ValueError):
        service.list_contacts(ALICE, size=0)


def test_search_matches_first_or_last_name_case_insensitive() -> None:
    service = _service()
    service.create_contact(ALICE, _data(first="Jane", last="Doe"))
    service.create_contact(ALICE, _data(first="John", last="Janeway"))
    service.create_contact(ALICE, _data(first="Mark", last="Twain"))
    service.create_contact(BOB, _data(first="Jane", last="Other"))

    names = [(c.first_name, c.last_name) for c in service.list_contacts(ALICE, "JANE")]
    assert names == [("Jane", "Doe"), ("John", "Janeway")]
    assert [c.first_name for c in service.list_contacts(ALICE, "wai")] == ["Mark"]


def test_search_with_no_match_returns_empty_page() -> None:
    service = _service()
    service.create_contact(ALICE, _data())
    assert service.list_contacts(ALICE, "zzz") == []


def test_blank_search_term_lists_all() -> None:
    service = _service()
    service.create_contact(ALICE, _data())
    service.create_contact(ALICE, _data(first="Mark"))
    assert len(service.list_contacts(ALICE, "   ")) == 2


def test_get_missing_contact() -> None:
    service = _service()
    with pytest.raises(ContactBookError) as exc:
        service.get_contact(ALICE, "does-not-exist")
    assert exc.value.kind is ErrorKind.RESOURCE_NOT_FOUND


@pytest.mark.parametrize("operation", ["get", "update", "delete"])
def test_foreign_contact_is_unauthorized(operation) -> None:
    service = _service()
    theirs = service.create_contact(BOB, _data())
    with pytest.raises(ContactBookError) as exc:
        if operation == "get":
            service.get_contact(ALICE, theirs.id)
        elif operation == "update":
            service.update_contact(ALICE, theirs.id, _data(title="Hijacked"))
        else:
            service.delete_contact(ALICE, theirs.id)
    assert exc.value.kind is ErrorKind.UNAUTHORIZED_ACCESS
    assert service.get_contact(BOB, theirs.id) == theirs


@pytest.mark.parametrize("operation", ["update", "delete"])
def test_missing_contact_is_not_found(operation) -> None:
    service = _service()
    with pytest.raises(ContactBookError) as exc:
        if operation == "update":
            service.update_contact(ALICE, "nope", _data())
        else:
            service.delete_contact(ALICE, "nope")
    assert exc.value.kind is ErrorKind.RESOURCE_NOT_FOUND


def test_conceal_foreign_contacts_reports_not_found() -> None:
    service = _service(conceal_foreign_contacts=True)
    theirs = service.create_contact(BOB, _data())
    with pytest.raises(ContactBookError) as exc:
        service.get_contact(ALICE, theirs.id)
    assert exc.value.kind is ErrorKind.RESOURCE_NOT_FOUND


def test_update_replaces_fields_and_children() -> None:
    service = _service()
    created = service.create_contact(
        ALICE,
        _data(
            emails=[ContactEmail("work", "jane@work.com"), ContactEmail("home", "jane@home.com")],
            phones=[ContactPhone("mobile", "03001111111")],
        ),
    )
    updated = service.update_contact(
        ALICE,
        created.id,
        _data(
            first="Janet",
            last="Doe",
            title="VP",
            emails=[ContactEmail("new", "janet@new.com")],
            phones=[],
        ),
    )
    assert updated.id == created.id
    assert updated.first_name == "Janet"
    assert updated.title == "VP"
    assert updated.emails == (ContactEmail("new", "janet@new.com"),)
    assert updated.phones == ()
    assert service.get_contact(ALICE, created.id) == updated


def test_update_title_only_skips_duplicate_check() -> None:
    repo = CountingContactRepository()
    service = _service(repo)
    created = service.create_contact(ALICE, _data())
    checks_after_create = repo.name_checks

    service.update_contact(ALICE, created.id, _data(title="New title"))
    assert repo.name_checks == checks_after_create


def test_update_to_existing_name_fails() -> None:
    repo = CountingContactRepository()
    service = _service(repo)
    service.create_contact(ALICE, _data(first="Mark", last="Twain"))
    jane = service.create_contact(ALICE, _data())
    checks_before = repo.name_checks

    with pytest.raises(ContactBookError) as exc:
        service.update_contact(ALICE, jane.id, _data(first="Mark", last="Twain"))
    assert exc.value.kind is ErrorKind.DUPLICATE_CONTACT
    assert repo.name_checks == checks_before + 1
    assert service.get_contact(ALICE, jane.id).first_name == "Jane"


def test_update_to_name_used_by_other_owner_allowed() -> None:
    service = _service()
    service.create_contact(BOB, _data(first="Mark", last="Twain"))
    jane = service.create_contact(ALICE, _data())
    updated = service.update_contact(ALICE, jane.id, _data(first="Mark", last="Twain"))
    assert updated.first_name == "Mark"


def test_update_removing_all_children_fails_and_keeps_stored_contact() -> None:
    service = _service()
    created = service.create_contact(ALICE, _data())
    with pytest.raises(ContactBookError) as exc:
        service.update_contact(ALICE, created.id, _data(emails=[], phones=[]))
    assert exc.value.kind is ErrorKind.INVALID_CONTACT
    assert service.get_contact(ALICE, created.id) == created


def test_delete_removes_contact() -> None:
    service = _service()
    created = service.create_contact(ALICE, _data())
    assert service.delete_contact(ALICE, created.id) is True
    with pytest.raises(ContactBookError) as exc:
        service.get_contact(ALICE, created.id)
    assert exc.value.kind is ErrorKind.RESOURCE_NOT_FOUND
    # Name is free again.
    service.create_contact(ALICE, _data())
