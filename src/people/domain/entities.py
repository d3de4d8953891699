"""Domain entities: Person, ContactRef, and Gender."""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime


class Gender(enum.Enum):
    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class ContactRef:
    """
    Summary of a person as seen from someone else's contact list.
    Always built from the contact's current row, never stored on the owner.
    """

    id: uuid.UUID
    name: str
    surname: str
    email: str


@dataclass(frozen=True)
class Person:
    """
    A person record together with its outgoing contacts (the aggregate).
    Age is not part of the entity; it is derived from birthday at read time.
    """

    id: uuid.UUID
    name: str
    surname: str
    email: str
    created_at: datetime
    modified_at: datetime
    gender: Gender | None = None
    birthday: date | None = None
    phone: str | None = None
    contacts: tuple[ContactRef, ...] = field(default=())

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Person name must be non-empty.")
        if not self.surname or not self.surname.strip():
            raise ValueError("Person surname must be non-empty.")
        if not self.email:
            raise ValueError("Person email must be non-empty.")

    @property
    def contact_ids(self) -> list[uuid.UUID]:
        return [c.id for c in self.contacts]
