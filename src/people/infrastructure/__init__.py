"""Infrastructure layer: concrete implementations of application ports."""

from people.infrastructure.database import create_engine_for, ensure_schema
from people.infrastructure.persistence import SqlPersonRepository

__all__ = [
    "SqlPersonRepository",
    "create_engine_for",
    "ensure_schema",
]
