"""Tests for SqlPersonRepository against a real SQL engine (see conftest)."""

import time
import uuid
from datetime import date

import pytest
from sqlalchemy import func, insert, select

from conftest import person_fields
from people.domain import ContactsMissing, EmailAlreadyExists, Gender, SelfReference
from people.infrastructure.persistence import person, person_contact


def _link_count(engine) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(person_contact)).scalar_one()


def _person_count(engine) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(person)).scalar_one()


def test_add_get_by_id(repo):
    created = repo.add(
        person_fields(
            "ada@example.com",
            gender=Gender.FEMALE,
            birthday=date(1815, 12, 10),
            phone="+44 20 7946 0000",
        )
    )
    assert isinstance(created.id, uuid.UUID)
    assert created.contacts == ()
    assert created.created_at is not None
    assert created.modified_at is not None

    found = repo.get_by_id(created.id)
    assert found is not None
    assert found.name == "Ada"
    assert found.surname == "Lovelace"
    assert found.gender is Gender.FEMALE
    assert found.birthday == date(1815, 12, 10)
    assert found.phone == "+44 20 7946 0000"
    assert found.email == "ada@example.com"


def test_get_by_id_missing_returns_none(repo):
    assert repo.get_by_id(uuid.uuid4()) is None


def test_add_with_contacts_orders_by_email(repo):
    zed = repo.add(person_fields("zed@example.com", name="Zed"))
    bob = repo.add(person_fields("bob@example.com", name="Bob"))
    owner = repo.add(person_fields("owner@example.com"), [zed.id, bob.id])

    assert [c.email for c in owner.contacts] == ["bob@example.com", "zed@example.com"]
    assert [c.name for c in owner.contacts] == ["Bob", "Zed"]


def test_add_with_unknown_contact_writes_nothing(repo, engine):
    known = repo.add(person_fields("known@example.com"))
    missing = uuid.uuid4()
    with pytest.raises(ContactsMissing) as info:
        repo.add(person_fields("new@example.com"), [known.id, missing])
    assert info.value.contact_ids == [missing]
    assert _person_count(engine) == 1
    assert _link_count(engine) == 0


def test_duplicate_email_conflicts_and_first_survives(repo, engine):
    first = repo.add(person_fields("same@example.com"))
    with pytest.raises(EmailAlreadyExists):
        repo.add(person_fields("same@example.com", name="Other"))
    assert _person_count(engine) == 1
    assert repo.get_by_id(first.id).name == "Ada"


def test_email_uniqueness_is_case_sensitive_as_stored(repo):
    repo.add(person_fields("case@example.com"))
    other = repo.add(person_fields("Case@example.com"))
    assert other.email == "Case@example.com"


def test_update_only_touches_present_fields(repo):
    created = repo.add(person_fields("p@example.com", phone="123", gender=Gender.MALE))
    updated = repo.update(created.id, {"name": "Grace"})
    assert updated.name == "Grace"
    assert updated.surname == "Lovelace"
    assert updated.phone == "123"
    assert updated.gender is Gender.MALE


def test_update_explicit_none_clears_optional_field(repo):
    created = repo.add(person_fields("p@example.com", phone="123"))
    updated = repo.update(created.id, {"phone": None})
    assert updated.phone is None


def test_update_missing_person_returns_none(repo):
    assert repo.update(uuid.uuid4(), {"name": "X"}) is None
    assert repo.update(uuid.uuid4(), {}, []) is None


def test_update_bumps_modified(repo):
    created = repo.add(person_fields("p@example.com"))
    time.sleep(0.01)
    updated = repo.update(created.id, {"phone": "555"})
    assert updated.modified_at > created.modified_at
    assert updated.created_at == created.created_at


def test_contact_only_update_bumps_modified(repo):
    contact = repo.add(person_fields("c@example.com"))
    owner = repo.add(person_fields("o@example.com"))
    time.sleep(0.01)
    updated = repo.update(owner.id, {}, [contact.id])
    assert updated.modified_at > owner.modified_at


def test_empty_update_writes_nothing(repo):
    created = repo.add(person_fields("p@example.com"))
    time.sleep(0.01)
    same = repo.update(created.id, {})
    assert same.modified_at == created.modified_at


def test_update_email_conflict_rolls_back(repo):
    repo.add(person_fields("taken@example.com"))
    mine = repo.add(person_fields("mine@example.com"))
    with pytest.raises(EmailAlreadyExists):
        repo.update(mine.id, {"email": "taken@example.com", "name": "Changed"})
    assert repo.get_by_id(mine.id).name == "Ada"
    assert repo.get_by_id(mine.id).email == "mine@example.com"


def test_update_keeping_own_email_is_fine(repo):
    mine = repo.add(person_fields("mine@example.com"))
    assert repo.update(mine.id, {"email": "mine@example.com"}).email == "mine@example.com"


def test_replace_contacts_and_idempotence(repo):
    a = repo.add(person_fields("a@example.com"))
    b = repo.add(person_fields("b@example.com"))
    owner = repo.add(person_fields("owner@example.com"), [a.id])

    first = repo.update(owner.id, {}, [b.id])
    second = repo.update(owner.id, {}, [b.id])
    assert first.contact_ids == [b.id]
    assert second.contact_ids == [b.id]


def test_absent_contacts_leave_links_untouched(repo):
    a = repo.add(person_fields("a@example.com"))
    owner = repo.add(person_fields("owner@example.com"), [a.id])
    updated = repo.update(owner.id, {"name": "Renamed"})
    assert updated.contact_ids == [a.id]


def test_empty_contacts_clear_links(repo, engine):
    a = repo.add(person_fields("a@example.com"))
    owner = repo.add(person_fields("owner@example.com"), [a.id])
    assert repo.update(owner.id, {}, []).contacts == ()
    assert _link_count(engine) == 0


def test_unknown_contact_on_update_rolls_back_scalars(repo):
    a = repo.add(person_fields("a@example.com"))
    owner = repo.add(person_fields("owner@example.com"), [a.id])
    with pytest.raises(ContactsMissing):
        repo.update(owner.id, {"name": "Staged"}, [uuid.uuid4()])
    after = repo.get_by_id(owner.id)
    assert after.name == "Ada"
    assert after.contact_ids == [a.id]
    assert after.modified_at == owner.modified_at


def test_self_contact_rejected(repo, engine):
    owner = repo.add(person_fields("owner@example.com"))
    with pytest.raises(SelfReference):
        repo.update(owner.id, {}, [owner.id])
    assert _link_count(engine) == 0


def test_store_check_rejects_self_link(repo, engine):
    from sqlalchemy.exc import IntegrityError

    owner = repo.add(person_fields("owner@example.com"))
    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            conn.execute(insert(person_contact).values(person_id=owner.id, contact_id=owner.id))


def test_live_contact_propagation(repo):
    b = repo.add(person_fields("b@example.com", name="Bea"))
    a = repo.add(person_fields("a@example.com"), [b.id])
    repo.update(b.id, {"name": "Beatrice", "email": "bea@example.com"})

    contacts = repo.get_by_id(a.id).contacts
    assert [(c.name, c.email) for c in contacts] == [("Beatrice", "bea@example.com")]


def test_delete_cascades_links(repo, engine):
    b = repo.add(person_fields("b@example.com"))
    c = repo.add(person_fields("c@example.com"))
    a = repo.add(person_fields("a@example.com"), [b.id, c.id])
    repo.update(b.id, {}, [a.id])

    assert repo.delete(b.id) is True
    assert repo.get_by_id(b.id) is None
    assert repo.get_by_id(a.id).contact_ids == [c.id]
    assert _link_count(engine) == 1


def test_delete_missing_returns_false(repo):
    assert repo.delete(uuid.uuid4()) is False


def test_contacts_are_directed(repo):
    b = repo.add(person_fields("b@example.com"))
    a = repo.add(person_fields("a@example.com"), [b.id])
    assert repo.get_by_id(a.id).contact_ids == [b.id]
    assert repo.get_by_id(b.id).contacts == ()


def test_list_page_partitions_by_email(repo):
    for local in ("e", "c", "a", "d", "b"):
        repo.add(person_fields(f"{local}@example.com"))

    first = repo.list_page(2, 0)
    second = repo.list_page(2, 2)
    third = repo.list_page(2, 4)

    emails = [p.email for page in (first, second, third) for p in page.items]
    assert emails == [f"{x}@example.com" for x in "abcde"]
    assert first.total == second.total == third.total == 5
    assert len(third.items) == 1


def test_list_page_stats(repo):
    empty = repo.list_page(20, 0)
    assert empty.items == []
    assert empty.total == 0
    assert empty.latest_modified is None

    a = repo.add(person_fields("a@example.com"))
    time.sleep(0.01)
    b = repo.add(person_fields("b@example.com"), [a.id])
    page = repo.list_page(20, 0)
    assert page.latest_modified == b.modified_at
    assert page.items[1].contact_ids == [a.id]


def test_gender_check_is_not_reported_as_self_reference(repo, engine):
    from sqlalchemy.exc import IntegrityError

    with pytest.raises(IntegrityError):
        repo.add(person_fields("odd@example.com", gender="other"))
    assert _person_count(engine) == 0
