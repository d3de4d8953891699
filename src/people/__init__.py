"""
People core: clean-architecture layout.

- domain: entities (Person, ContactRef), age derivation, store errors. No outer dependencies.
- application: use cases (PersonService), ports (PersonRepository), DTOs, ETag fingerprints.
- infrastructure: adapters (SqlPersonRepository, engine and schema bootstrap).
"""

from people.application import (
    Deleted,
    Duplicate,
    Invalid,
    PeoplePage,
    PersonNotFound,
    PersonRepository,
    PersonService,
    PersonView,
    Unchanged,
    UnknownContacts,
)
from people.domain import ContactRef, Gender, Person, compute_age
from people.infrastructure import SqlPersonRepository, create_engine_for, ensure_schema

__all__ = [
    "ContactRef",
    "Deleted",
    "Duplicate",
    "Gender",
    "Invalid",
    "PeoplePage",
    "Person",
    "PersonNotFound",
    "PersonRepository",
    "PersonService",
    "PersonView",
    "SqlPersonRepository",
    "Unchanged",
    "UnknownContacts",
    "compute_age",
    "create_engine_for",
    "ensure_schema",
]
