"""
FastAPI backend: REST API for people and the GraphQL endpoint at /graphql.
Run with uvicorn: uvicorn api.main:app --reload
"""

import logging
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root (when run from repo root or from Docker)
for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Header, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import Engine

from api.config import Settings
from api.graphql_schema import build_graphql_router
from people.application import (
    Duplicate,
    Failure,
    Invalid,
    PersonCreate,
    PersonNotFound,
    PersonPatch,
    PersonService,
    PersonView,
    Unchanged,
    UnknownContacts,
)
from people.infrastructure import SqlPersonRepository, create_engine_for, ensure_schema

settings = Settings.from_env()

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=settings.log_level,
)
logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    Invalid.code: 400,
    UnknownContacts.code: 422,
    Duplicate.code: 409,
    PersonNotFound.code: 404,
}

router = APIRouter()


def get_service(request: Request) -> PersonService:
    return request.app.state.service


def _raise_for(result) -> None:
    if isinstance(result, Failure):
        raise HTTPException(status_code=STATUS_BY_CODE[result.code], detail=result.message)


def _person_response(view: PersonView, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        content=view.as_dict(),
        status_code=status_code,
        headers={"ETag": view.etag},
    )


def _not_modified(result: Unchanged) -> Response:
    return Response(status_code=304, headers={"ETag": result.etag})


# --- REST: health ---


@router.get("/health")
def health():
    return {"status": "ok"}


# --- REST: people ---


@router.post("/people", status_code=201)
def create_person(body: PersonCreate, request: Request):
    result = get_service(request).create_person(body)
    _raise_for(result)
    return _person_response(result, status_code=201)


@router.get("/people")
def list_people(
    request: Request,
    limit: int = 20,
    offset: int = 0,
    if_none_match: str | None = Header(None),
):
    result = get_service(request).list_people(limit, offset, if_none_match=if_none_match)
    if isinstance(result, Unchanged):
        return _not_modified(result)
    _raise_for(result)
    return JSONResponse(content=result.as_dict(), headers={"ETag": result.etag})


@router.get("/people/{person_id}")
def get_person(
    person_id: str,
    request: Request,
    if_none_match: str | None = Header(None),
):
    result = get_service(request).get_person(person_id, if_none_match=if_none_match)
    if isinstance(result, Unchanged):
        return _not_modified(result)
    _raise_for(result)
    return _person_response(result)


@router.patch("/people/{person_id}")
def update_person(person_id: str, body: PersonPatch, request: Request):
    result = get_service(request).update_person(person_id, body)
    _raise_for(result)
    return _person_response(result)


@router.delete("/people/{person_id}", status_code=204)
def delete_person(person_id: str, request: Request):
    result = get_service(request).delete_person(person_id)
    _raise_for(result)
    return Response(status_code=204)


async def _request_validation_error(request: Request, exc: RequestValidationError):
    # 422 is reserved for unknown contact ids; malformed input is a 400.
    detail = "; ".join(
        ".".join(str(p) for p in error["loc"]) + ": " + error["msg"] for error in exc.errors()
    )
    return JSONResponse(status_code=400, content={"detail": detail})


async def _cache_headers(request: Request, call_next):
    response = await call_next(request)
    if request.method == "GET":
        response.headers.setdefault("Cache-Control", "public, max-age=60")
    return response


def create_app(engine: Engine | None = None, *, app_settings: Settings | None = None) -> FastAPI:
    """Build the application. Without an engine, one is created from DATABASE_URL at start-up."""
    cfg = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = engine or create_engine_for(cfg.require_database_url(), pool_size=cfg.db_pool_size)
        try:
            ensure_schema(db)
            app.state.service = PersonService(SqlPersonRepository(db))
            logger.info("People API ready (REST: /people, GraphQL: /graphql)")
            yield
        finally:
            if engine is None:
                db.dispose()
            logger.info("People API stopped")

    app = FastAPI(title="People API", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.middleware("http")(_cache_headers)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.include_router(router)
    app.include_router(build_graphql_router(graphiql=cfg.graphiql), prefix="/graphql")
    return app


app = create_app()
