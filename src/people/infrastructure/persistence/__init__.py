from people.infrastructure.persistence.schema import metadata, person, person_contact
from people.infrastructure.persistence.sql_repository import SqlPersonRepository

__all__ = ["SqlPersonRepository", "metadata", "person", "person_contact"]
