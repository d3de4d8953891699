"""Application ports (interfaces). Implemented by infrastructure adapters."""

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from people.domain import Person


@dataclass(frozen=True)
class PersonPage:
    """One window of persons ordered by email, plus table-wide stats."""

    items: list[Person]
    total: int
    latest_modified: datetime | None


class PersonRepository(Protocol):
    """Persists person aggregates (Person + outgoing contact links).

    Every mutating method is atomic. Failures raise PersonStoreError
    subclasses after the store has been rolled back.
    """

    def add(self, fields: Mapping[str, Any], contact_ids: Sequence[uuid.UUID] = ()) -> Person:
        """Insert a person and its initial contacts. Returns the stored aggregate."""
        ...

    def get_by_id(self, person_id: uuid.UUID) -> Person | None:
        """Return the person with the given id, or None."""
        ...

    def update(
        self,
        person_id: uuid.UUID,
        changes: Mapping[str, Any],
        contact_ids: Sequence[uuid.UUID] | None = None,
    ) -> Person | None:
        """Apply scalar changes and, if contact_ids is not None, replace the contact set.
        Returns None if the person does not exist."""
        ...

    def delete(self, person_id: uuid.UUID) -> bool:
        """Remove the person (links cascade). Returns False if not found."""
        ...

    def list_page(self, limit: int, offset: int) -> PersonPage:
        """Return persons ordered by email ascending, with total count."""
        ...
