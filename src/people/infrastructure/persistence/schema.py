"""Relational schema for persons and their directed contact links.

Invariants live here rather than in calling code: unique email, gender
membership, no self-contact, cascading link removal, and a trigger that
refreshes person.modified_at on every UPDATE of a row.
"""

from sqlalchemy import (
    DDL,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    event,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import FunctionElement

from people.domain import Gender

metadata = MetaData()


class utcnow(FunctionElement):
    """Current timestamp with sub-second precision on every supported backend."""

    type = DateTime(timezone=True)
    inherit_cache = True


@compiles(utcnow, "postgresql")
def _pg_utcnow(element, compiler, **kw):
    return "now()"


@compiles(utcnow, "sqlite")
def _sqlite_utcnow(element, compiler, **kw):
    return "(strftime('%Y-%m-%d %H:%M:%f', 'now'))"


@compiles(utcnow)
def _default_utcnow(element, compiler, **kw):
    return "CURRENT_TIMESTAMP"


SELF_LINK_CHECK = "ck_person_contact_not_self"

person = Table(
    "person",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("name", Text, nullable=False),
    Column("surname", Text, nullable=False),
    Column(
        "gender",
        Enum(
            Gender,
            name="person_gender",
            native_enum=False,
            create_constraint=True,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=True,
    ),
    Column("birthday", Date, nullable=True),
    Column("phone", Text, nullable=True),
    Column("email", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=utcnow()),
    Column("modified_at", DateTime(timezone=True), nullable=False, server_default=utcnow()),
    UniqueConstraint("email", name="uq_person_email"),
)

person_contact = Table(
    "person_contact",
    metadata,
    Column(
        "person_id",
        Uuid,
        ForeignKey("person.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "contact_id",
        Uuid,
        ForeignKey("person.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
    CheckConstraint("person_id <> contact_id", name=SELF_LINK_CHECK),
)

# DDL strings go through %-formatting, hence the doubled percent signs.
_PG_TOUCH_FUNCTION = DDL(
    """
    CREATE OR REPLACE FUNCTION person_touch_modified() RETURNS trigger AS $$
    BEGIN
        NEW.modified_at = now();
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
    """
)

_PG_TOUCH_TRIGGER = DDL(
    """
    CREATE TRIGGER trg_person_modified
    BEFORE UPDATE ON person
    FOR EACH ROW EXECUTE FUNCTION person_touch_modified()
    """
)

_SQLITE_TOUCH_TRIGGER = DDL(
    """
    CREATE TRIGGER trg_person_modified
    AFTER UPDATE ON person
    FOR EACH ROW WHEN NEW.modified_at IS OLD.modified_at
    BEGIN
        UPDATE person
        SET modified_at = strftime('%%Y-%%m-%%d %%H:%%M:%%f', 'now')
        WHERE id = NEW.id;
    END
    """
)

event.listen(person, "after_create", _PG_TOUCH_FUNCTION.execute_if(dialect="postgresql"))
event.listen(person, "after_create", _PG_TOUCH_TRIGGER.execute_if(dialect="postgresql"))
event.listen(person, "after_create", _SQLITE_TOUCH_TRIGGER.execute_if(dialect="sqlite"))
