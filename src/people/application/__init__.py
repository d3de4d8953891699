"""Application layer: use cases, ports, DTOs and fingerprints. Depends only on domain."""

from people.application.dto import (
    ContactView,
    Deleted,
    Duplicate,
    Failure,
    Invalid,
    PeoplePage,
    PersonCreate,
    PersonNotFound,
    PersonPatch,
    PersonView,
    Unchanged,
    UnknownContacts,
)
from people.application.person_service import PersonService, parse_person_id
from people.application.ports import PersonPage, PersonRepository

__all__ = [
    "ContactView",
    "Deleted",
    "Duplicate",
    "Failure",
    "Invalid",
    "PeoplePage",
    "PersonCreate",
    "PersonNotFound",
    "PersonPage",
    "PersonPatch",
    "PersonRepository",
    "PersonService",
    "PersonView",
    "Unchanged",
    "UnknownContacts",
    "parse_person_id",
]
