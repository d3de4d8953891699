"""Input models and result DTOs shared by every protocol adapter."""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Annotated, Any, ClassVar

from email_validator import EmailNotValidError, validate_email
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    StringConstraints,
    field_validator,
)

from people.domain import Gender, Person, compute_age


def _check_email(value: str) -> str:
    # Validate only; the address is stored exactly as given.
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(str(exc)) from exc
    return value


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Email = Annotated[str, AfterValidator(_check_email)]


def _unique_ids(value: list[uuid.UUID] | None) -> list[uuid.UUID] | None:
    if value is not None and len(set(value)) != len(value):
        raise ValueError("contacts must not contain duplicates")
    return value


# --- Inputs ---


class PersonCreate(BaseModel):
    """Body of a create call. `age` is derived and therefore not accepted."""

    model_config = ConfigDict(extra="forbid")

    name: NonEmptyStr
    surname: NonEmptyStr
    gender: Gender | None = None
    birthday: date | None = None
    phone: str | None = None
    email: Email
    contacts: list[uuid.UUID] | None = None

    @field_validator("contacts")
    @classmethod
    def check_contacts_unique(cls, value):
        return _unique_ids(value)

    def scalar_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude={"contacts"})


class PersonPatch(BaseModel):
    """Body of a partial update. Only keys the caller sent are applied."""

    model_config = ConfigDict(extra="forbid")

    name: NonEmptyStr | None = None
    surname: NonEmptyStr | None = None
    gender: Gender | None = None
    birthday: date | None = None
    phone: str | None = None
    email: Email | None = None
    contacts: list[uuid.UUID] | None = None

    @field_validator("contacts")
    @classmethod
    def check_contacts_unique(cls, value):
        return _unique_ids(value)

    @field_validator("name", "surname", "email")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value

    def changes(self) -> dict[str, Any]:
        """Scalar fields present in the request (explicit nulls included)."""
        return self.model_dump(exclude_unset=True, exclude={"contacts"})

    def new_contacts(self) -> list[uuid.UUID] | None:
        """Replacement contact set, or None when contacts were not sent."""
        if "contacts" not in self.model_fields_set:
            return None
        return self.contacts or []


# --- Views ---


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with milliseconds, e.g. 2024-05-01T10:00:00.123Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


@dataclass(frozen=True)
class ContactView:
    id: str
    name: str
    surname: str
    email: str


@dataclass(frozen=True)
class PersonView:
    """Serialized person, identical for every protocol. `etag` is not a field."""

    id: str
    name: str
    surname: str
    age: int | None
    gender: str | None
    birthday: str | None
    phone: str | None
    email: str
    contacts: tuple[ContactView, ...]
    created: str
    modified: str
    etag: str = field(default="", repr=False, compare=False)

    @classmethod
    def from_person(cls, person: Person, today: date, etag: str = "") -> "PersonView":
        return cls(
            id=str(person.id),
            name=person.name,
            surname=person.surname,
            age=compute_age(person.birthday, today),
            gender=person.gender.value if person.gender else None,
            birthday=person.birthday.isoformat() if person.birthday else None,
            phone=person.phone,
            email=person.email,
            contacts=tuple(
                ContactView(id=str(c.id), name=c.name, surname=c.surname, email=c.email)
                for c in person.contacts
            ),
            created=format_timestamp(person.created_at),
            modified=format_timestamp(person.modified_at),
            etag=etag,
        )

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        del data["etag"]
        data["contacts"] = list(data["contacts"])
        return data


@dataclass(frozen=True)
class PeoplePage:
    total: int
    limit: int
    offset: int
    items: tuple[PersonView, ...]
    etag: str = field(default="", repr=False, compare=False)

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "items": [item.as_dict() for item in self.items],
        }


@dataclass(frozen=True)
class Deleted:
    person_id: str


@dataclass(frozen=True)
class Unchanged:
    """The caller's fingerprint still matches; no body is sent."""

    etag: str


# --- Failures ---


@dataclass(frozen=True)
class Invalid:
    code: ClassVar[str] = "VALIDATION"
    reason: str

    @property
    def message(self) -> str:
        return self.reason


@dataclass(frozen=True)
class UnknownContacts:
    code: ClassVar[str] = "REFERENTIAL"
    contact_ids: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        return "One or more contact IDs do not exist"


@dataclass(frozen=True)
class Duplicate:
    code: ClassVar[str] = "CONFLICT"
    email: str

    @property
    def message(self) -> str:
        return "Email already exists"


@dataclass(frozen=True)
class PersonNotFound:
    code: ClassVar[str] = "NOT_FOUND"
    person_id: str

    @property
    def message(self) -> str:
        return f"Person {self.person_id} not found"


Failure = Invalid | UnknownContacts | Duplicate | PersonNotFound
