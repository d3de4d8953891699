"""Errors raised by person stores. They abort the surrounding transaction."""

import uuid


class PersonStoreError(Exception):
    pass


class EmailAlreadyExists(PersonStoreError):
    """The email is already used by another person (unique constraint)."""


class ContactsMissing(PersonStoreError):
    """One or more contact ids do not reference an existing person."""

    def __init__(self, contact_ids: list[uuid.UUID]):
        self.contact_ids = list(contact_ids)
        super().__init__(
            "Unknown contact ids: " + ", ".join(str(c) for c in self.contact_ids)
        )


class SelfReference(PersonStoreError):
    """A person cannot list itself as a contact."""
