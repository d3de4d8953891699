"""GraphQL surface. Resolvers call PersonService exactly like the REST routes do;
failures are reported as GraphQL errors whose extensions carry the error code."""

import strawberry
from fastapi import Request
from graphql import GraphQLError
from starlette.concurrency import run_in_threadpool
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info

from people.application import Failure, PersonService, PersonView


def _service(info: Info) -> PersonService:
    return info.context["service"]


async def _call(info: Info, method: str, *args):
    """Run a blocking service call on the worker pool, raising failures as GraphQL errors."""
    result = await run_in_threadpool(getattr(_service(info), method), *args)
    if isinstance(result, Failure):
        raise GraphQLError(result.message, extensions={"code": result.code})
    return result


@strawberry.type(name="Contact")
class ContactType:
    id: strawberry.ID
    name: str
    surname: str
    email: str


@strawberry.type(name="Person")
class PersonType:
    id: strawberry.ID
    name: str
    surname: str
    age: int | None
    gender: str | None
    birthday: str | None
    phone: str | None
    email: str
    contacts: list[ContactType]
    created: str
    modified: str

    @classmethod
    def from_view(cls, view: PersonView) -> "PersonType":
        return cls(
            id=strawberry.ID(view.id),
            name=view.name,
            surname=view.surname,
            age=view.age,
            gender=view.gender,
            birthday=view.birthday,
            phone=view.phone,
            email=view.email,
            contacts=[
                ContactType(id=strawberry.ID(c.id), name=c.name, surname=c.surname, email=c.email)
                for c in view.contacts
            ],
            created=view.created,
            modified=view.modified,
        )


@strawberry.type(name="PeoplePage")
class PeoplePageType:
    total: int
    limit: int
    offset: int
    items: list[PersonType]


@strawberry.input
class PersonInput:
    """Same fields as the REST body. Omitted fields are left untouched on update."""

    name: str | None = strawberry.UNSET
    surname: str | None = strawberry.UNSET
    gender: str | None = strawberry.UNSET
    birthday: str | None = strawberry.UNSET
    phone: str | None = strawberry.UNSET
    email: str | None = strawberry.UNSET
    contacts: list[strawberry.ID] | None = strawberry.UNSET

    def to_payload(self) -> dict:
        return {k: v for k, v in vars(self).items() if v is not strawberry.UNSET}


@strawberry.type
class Query:
    @strawberry.field
    async def person(self, info: Info, id: strawberry.ID) -> PersonType | None:
        return PersonType.from_view(await _call(info, "get_person", id))

    @strawberry.field
    async def people(self, info: Info, limit: int = 20, offset: int = 0) -> PeoplePageType:
        page = await _call(info, "list_people", limit, offset)
        return PeoplePageType(
            total=page.total,
            limit=page.limit,
            offset=page.offset,
            items=[PersonType.from_view(v) for v in page.items],
        )


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def create_person(self, info: Info, input: PersonInput) -> PersonType:
        return PersonType.from_view(await _call(info, "create_person", input.to_payload()))

    @strawberry.mutation
    async def update_person(self, info: Info, id: strawberry.ID, input: PersonInput) -> PersonType:
        view = await _call(info, "update_person", id, input.to_payload())
        return PersonType.from_view(view)

    @strawberry.mutation
    async def delete_person(self, info: Info, id: strawberry.ID) -> bool:
        await _call(info, "delete_person", id)
        return True


schema = strawberry.Schema(query=Query, mutation=Mutation)


async def get_context(request: Request) -> dict:
    return {"service": request.app.state.service}


def build_graphql_router(*, graphiql: bool) -> GraphQLRouter:
    return GraphQLRouter(
        schema,
        context_getter=get_context,
        graphql_ide="graphiql" if graphiql else None,
    )
