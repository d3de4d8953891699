"""Shared fixtures. Every store test runs twice: against in-memory SQLite and
against PostgreSQL. PostgreSQL comes from TEST_DATABASE_URL when set, otherwise
from a throwaway container (testcontainers, needs Docker). Tables are created if
missing and emptied before each test."""

import os
from datetime import date

import pytest
from sqlalchemy import delete

from people.application import PersonService
from people.infrastructure import SqlPersonRepository, create_engine_for, ensure_schema
from people.infrastructure.persistence import person, person_contact

TODAY = date(2024, 6, 15)


@pytest.fixture(scope="session")
def postgres_url():
    url = os.environ.get("TEST_DATABASE_URL")
    if url:
        yield url
        return

    from testcontainers.postgres import PostgresContainer

    try:
        container = PostgresContainer("postgres:16-alpine", driver="psycopg")
        container.start()
    except Exception as exc:  # no Docker daemon reachable
        pytest.skip(f"PostgreSQL container unavailable: {exc}")
    try:
        yield container.get_connection_url()
    finally:
        container.stop()


@pytest.fixture(params=["sqlite", "postgresql"])
def engine(request):
    if request.param == "sqlite":
        url = "sqlite://"
    else:
        url = request.getfixturevalue("postgres_url")
    engine = create_engine_for(url)
    ensure_schema(engine)
    with engine.begin() as conn:
        conn.execute(delete(person_contact))
        conn.execute(delete(person))
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def repo(engine) -> SqlPersonRepository:
    return SqlPersonRepository(engine)


@pytest.fixture
def service(repo) -> PersonService:
    return PersonService(repo, today=lambda: TODAY)


def person_fields(email: str, **overrides) -> dict:
    fields = {"name": "Ada", "surname": "Lovelace", "email": email}
    fields.update(overrides)
    return fields
