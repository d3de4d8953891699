"""SQLAlchemy implementation of PersonRepository.

person (scalar row) -[person_contact]-> person (contact). Every mutation runs
in one transaction; constraint violations raised by the store are translated
into domain errors after the transaction has been rolled back.
"""

import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlalchemy import Connection, Engine, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from people.application.ports import PersonPage
from people.domain import (
    ContactRef,
    ContactsMissing,
    EmailAlreadyExists,
    Gender,
    Person,
    PersonStoreError,
    SelfReference,
)
from people.infrastructure.persistence.schema import SELF_LINK_CHECK, person, person_contact

logger = logging.getLogger(__name__)

SCALAR_FIELDS = ("name", "surname", "gender", "birthday", "phone", "email")

_contact = person.alias("contact")


def _unique(ids: Iterable[uuid.UUID]) -> list[uuid.UUID]:
    return list(dict.fromkeys(ids))


def _scalar_values(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {k: fields[k] for k in SCALAR_FIELDS if k in fields}


def _translate(exc: IntegrityError) -> PersonStoreError | None:
    """Map a constraint violation to a domain error, or None if unrecognized."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    message = str(orig)
    if code == "23505" or "UNIQUE constraint failed" in message:
        return EmailAlreadyExists(message)
    if code == "23503" or "FOREIGN KEY constraint failed" in message:
        return ContactsMissing([])
    # Only the self-link CHECK has a domain meaning; gender CHECK failures propagate.
    if SELF_LINK_CHECK in message:
        return SelfReference(message)
    return None


def _require_contacts(conn: Connection, contact_ids: Sequence[uuid.UUID]) -> None:
    if not contact_ids:
        return
    found = set(
        conn.execute(select(person.c.id).where(person.c.id.in_(contact_ids))).scalars()
    )
    missing = [c for c in contact_ids if c not in found]
    if missing:
        raise ContactsMissing(missing)


def _insert_links(conn: Connection, person_id: uuid.UUID, contact_ids: Sequence[uuid.UUID]) -> None:
    if contact_ids:
        conn.execute(
            insert(person_contact),
            [{"person_id": person_id, "contact_id": c} for c in contact_ids],
        )


def _contacts_of(conn: Connection, person_ids: Sequence[uuid.UUID]) -> dict[uuid.UUID, list[ContactRef]]:
    """Live contact summaries per owner, each list ordered by contact email."""
    out: dict[uuid.UUID, list[ContactRef]] = {pid: [] for pid in person_ids}
    if not person_ids:
        return out
    rows = conn.execute(
        select(
            person_contact.c.person_id,
            _contact.c.id,
            _contact.c.name,
            _contact.c.surname,
            _contact.c.email,
        )
        .join(_contact, _contact.c.id == person_contact.c.contact_id)
        .where(person_contact.c.person_id.in_(person_ids))
        .order_by(_contact.c.email.asc())
    )
    for row in rows:
        out[row.person_id].append(
            ContactRef(id=row.id, name=row.name, surname=row.surname, email=row.email)
        )
    return out


def _row_to_person(row, contacts: Iterable[ContactRef]) -> Person:
    gender = row.gender
    if gender is not None and not isinstance(gender, Gender):
        gender = Gender(gender)
    return Person(
        id=row.id,
        name=row.name,
        surname=row.surname,
        email=row.email,
        gender=gender,
        birthday=row.birthday,
        phone=row.phone,
        created_at=row.created_at,
        modified_at=row.modified_at,
        contacts=tuple(contacts),
    )


def _load(conn: Connection, person_id: uuid.UUID) -> Person | None:
    row = conn.execute(select(person).where(person.c.id == person_id)).first()
    if row is None:
        return None
    return _row_to_person(row, _contacts_of(conn, [person_id])[person_id])


class SqlPersonRepository:
    """Stores person aggregates in a relational database through SQLAlchemy Core."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def add(self, fields: Mapping[str, Any], contact_ids: Sequence[uuid.UUID] = ()) -> Person:
        contact_ids = _unique(contact_ids)
        person_id = uuid.uuid4()
        try:
            with self._engine.begin() as conn:
                # Existence check first for a cheap, precise error; the
                # foreign keys still guard against a concurrent delete.
                _require_contacts(conn, contact_ids)
                conn.execute(insert(person).values(id=person_id, **_scalar_values(fields)))
                _insert_links(conn, person_id, contact_ids)
                return _load(conn, person_id)
        except IntegrityError as exc:
            translated = _translate(exc)
            if translated is None:
                raise
            logger.debug("Insert of person rolled back: %s", exc.orig)
            raise translated from exc

    def get_by_id(self, person_id: uuid.UUID) -> Person | None:
        with self._engine.connect() as conn:
            return _load(conn, person_id)

    def update(
        self,
        person_id: uuid.UUID,
        changes: Mapping[str, Any],
        contact_ids: Sequence[uuid.UUID] | None = None,
    ) -> Person | None:
        values = _scalar_values(changes)
        try:
            with self._engine.begin() as conn:
                found = conn.execute(
                    select(person.c.id).where(person.c.id == person_id).with_for_update()
                ).first()
                if found is None:
                    return None
                if values or contact_ids is not None:
                    if not values:
                        # Contact-only change: touch the row so the trigger bumps modified_at.
                        values = {"modified_at": person.c.modified_at}
                    conn.execute(update(person).where(person.c.id == person_id).values(**values))
                if contact_ids is not None:
                    contact_ids = _unique(contact_ids)
                    if person_id in contact_ids:
                        raise SelfReference(str(person_id))
                    conn.execute(delete(person_contact).where(person_contact.c.person_id == person_id))
                    _require_contacts(conn, contact_ids)
                    _insert_links(conn, person_id, contact_ids)
                return _load(conn, person_id)
        except IntegrityError as exc:
            translated = _translate(exc)
            if translated is None:
                raise
            logger.debug("Update of person %s rolled back: %s", person_id, exc.orig)
            raise translated from exc

    def delete(self, person_id: uuid.UUID) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(delete(person).where(person.c.id == person_id))
            return result.rowcount > 0

    def list_page(self, limit: int, offset: int) -> PersonPage:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(person).order_by(person.c.email.asc()).limit(limit).offset(offset)
            ).all()
            total, latest = conn.execute(
                select(func.count(), func.max(person.c.modified_at)).select_from(person)
            ).one()
            contacts = _contacts_of(conn, [r.id for r in rows])
        return PersonPage(
            items=[_row_to_person(r, contacts[r.id]) for r in rows],
            total=total,
            latest_modified=latest,
        )
