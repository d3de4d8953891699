"""Person use cases shared by the REST and GraphQL adapters.

Every adapter goes through PersonService: it validates raw payloads, calls the
repository, derives age and computes fingerprints. Adapters only translate the
returned value or failure DTO into their own representation.
"""

import logging
import uuid
from collections.abc import Callable, Mapping
from datetime import date, datetime, timezone
from typing import Any

from pydantic import BaseModel, ValidationError

from people.application.dto import (
    Deleted,
    Duplicate,
    Invalid,
    PeoplePage,
    PersonCreate,
    PersonNotFound,
    PersonPatch,
    PersonView,
    Unchanged,
    UnknownContacts,
)
from people.application.freshness import etag_matches, page_etag, person_etag
from people.application.ports import PersonRepository
from people.domain import (
    ContactsMissing,
    EmailAlreadyExists,
    Person,
    SelfReference,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def parse_person_id(raw: Any) -> uuid.UUID | None:
    """Return the UUID for an opaque id, or None if it is malformed."""
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw).strip())
    except (TypeError, ValueError):
        return None


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)


def _validate(model: type[BaseModel], payload: Mapping[str, Any] | BaseModel):
    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_unset=True)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        return Invalid(reason=_describe(exc))


class PersonService:
    """Create, fetch, update, delete and list persons with their contacts."""

    def __init__(
        self,
        repository: PersonRepository,
        *,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self._repo = repository
        self._today = today

    def _view(self, person: Person) -> PersonView:
        return PersonView.from_person(
            person, self._today(), etag=person_etag(person.modified_at)
        )

    def create_person(
        self, payload: Mapping[str, Any] | BaseModel
    ) -> PersonView | Invalid | UnknownContacts | Duplicate:
        """Validate and store a new person with its initial contacts."""
        data = _validate(PersonCreate, payload)
        if isinstance(data, Invalid):
            return data
        try:
            person = self._repo.add(data.scalar_fields(), data.contacts or [])
        except ContactsMissing as exc:
            logger.info("Create rejected: unknown contacts %s", exc.contact_ids)
            return UnknownContacts(contact_ids=tuple(str(c) for c in exc.contact_ids))
        except EmailAlreadyExists:
            logger.info("Create rejected: email already exists")
            return Duplicate(email=data.email)
        logger.info("Created person %s with %d contacts", person.id, len(person.contacts))
        return self._view(person)

    def get_person(
        self, person_id: Any, *, if_none_match: str | None = None
    ) -> PersonView | Unchanged | Invalid | PersonNotFound:
        """Return the person, or Unchanged if the caller's ETag still matches."""
        pid = parse_person_id(person_id)
        if pid is None:
            return Invalid(reason="id must be a UUID")
        person = self._repo.get_by_id(pid)
        if person is None:
            return PersonNotFound(person_id=str(pid))
        etag = person_etag(person.modified_at)
        if etag_matches(if_none_match, etag):
            return Unchanged(etag=etag)
        return self._view(person)

    def update_person(
        self, person_id: Any, payload: Mapping[str, Any] | BaseModel
    ) -> PersonView | Invalid | UnknownContacts | Duplicate | PersonNotFound:
        """Apply a partial update. Sending contacts replaces the whole contact set."""
        pid = parse_person_id(person_id)
        if pid is None:
            return Invalid(reason="id must be a UUID")
        patch = _validate(PersonPatch, payload)
        if isinstance(patch, Invalid):
            return patch
        try:
            person = self._repo.update(pid, patch.changes(), patch.new_contacts())
        except SelfReference:
            return Invalid(reason="A person cannot be its own contact")
        except ContactsMissing as exc:
            logger.info("Update of %s rejected: unknown contacts %s", pid, exc.contact_ids)
            return UnknownContacts(contact_ids=tuple(str(c) for c in exc.contact_ids))
        except EmailAlreadyExists:
            logger.info("Update of %s rejected: email already exists", pid)
            return Duplicate(email=patch.email or "")
        if person is None:
            return PersonNotFound(person_id=str(pid))
        logger.info("Updated person %s", pid)
        return self._view(person)

    def delete_person(self, person_id: Any) -> Deleted | Invalid | PersonNotFound:
        pid = parse_person_id(person_id)
        if pid is None:
            return Invalid(reason="id must be a UUID")
        if not self._repo.delete(pid):
            return PersonNotFound(person_id=str(pid))
        logger.info("Deleted person %s", pid)
        return Deleted(person_id=str(pid))

    def list_people(
        self,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
        *,
        if_none_match: str | None = None,
    ) -> PeoplePage | Unchanged | Invalid:
        """Return one page ordered by email, or Unchanged if the page ETag matches."""
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_LIMIT:
            return Invalid(reason=f"limit must be between 1 and {MAX_LIMIT}")
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            return Invalid(reason="offset must be 0 or greater")
        page = self._repo.list_page(limit, offset)
        etag = page_etag(limit, offset, page.total, page.latest_modified)
        if etag_matches(if_none_match, etag):
            return Unchanged(etag=etag)
        return PeoplePage(
            total=page.total,
            limit=limit,
            offset=offset,
            items=tuple(self._view(p) for p in page.items),
            etag=etag,
        )
