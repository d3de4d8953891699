"""Domain layer: entities, derivations and store errors. No dependencies on outer layers."""

from people.domain.age import MAX_AGE, compute_age
from people.domain.entities import ContactRef, Gender, Person
from people.domain.errors import (
    ContactsMissing,
    EmailAlreadyExists,
    PersonStoreError,
    SelfReference,
)

__all__ = [
    "MAX_AGE",
    "ContactRef",
    "ContactsMissing",
    "EmailAlreadyExists",
    "Gender",
    "Person",
    "PersonStoreError",
    "SelfReference",
    "compute_age",
]
