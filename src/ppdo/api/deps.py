"""FastAPI dependencies for API routes.

Wires repositories, the indexer and the services onto the per-request
session, and derives the caller's search scope from the authenticated user.
"""

from typing import Annotated

from fastapi import Depends

from ppdo.api.middleware.auth import CurrentUser, get_current_user
from ppdo.config import get_settings
from ppdo.domain.agencies.services import AgencyService
from ppdo.domain.departments.services import DepartmentService
from ppdo.domain.search.indexing import SearchIndexer
from ppdo.domain.search.reindex import ReindexService
from ppdo.domain.search.service import SearchService
from ppdo.domain.search.types import CallerScope
from ppdo.domain.users.services import UserService
from ppdo.infrastructure.database.connection import SessionDep, get_session
from ppdo.infrastructure.database.repositories import (
    DepartmentRepository,
    ImplementingAgencyRepository,
    SearchIndexRepository,
    UserRepository,
)


def get_search_index_repository(session: SessionDep) -> SearchIndexRepository:
    return SearchIndexRepository(session)


SearchIndexRepoDep = Annotated[SearchIndexRepository, Depends(get_search_index_repository)]


def get_indexer(store: SearchIndexRepoDep) -> SearchIndexer:
    return SearchIndexer(store)


IndexerDep = Annotated[SearchIndexer, Depends(get_indexer)]


def get_search_service(store: SearchIndexRepoDep) -> SearchService:
    return SearchService.from_settings(store, get_settings())


def get_reindex_service(session: SessionDep, store: SearchIndexRepoDep) -> ReindexService:
    return ReindexService(session, store=store, batch_size=get_settings().reindex_batch_size)


def get_agency_service(session: SessionDep, indexer: IndexerDep) -> AgencyService:
    return AgencyService(ImplementingAgencyRepository(session), indexer)


def get_department_service(session: SessionDep, indexer: IndexerDep) -> DepartmentService:
    return DepartmentService(DepartmentRepository(session), indexer)


def get_user_service(session: SessionDep, indexer: IndexerDep) -> UserService:
    return UserService(UserRepository(session), indexer)


async def get_caller_scope(user: CurrentUser, session: SessionDep) -> CallerScope:
    """Department visibility and affinity of the authenticated caller.

    With department scoping on, everyone but super admins only sees their
    own department's records.
    """
    settings = get_settings()
    restrict = settings.search_department_scoped and user.role != "super_admin"
    if user.department_id is None:
        return CallerScope(restrict_to_department=restrict)

    related = await DepartmentRepository(session).get_related_ids(user.department_id)
    return CallerScope(
        department_id=str(user.department_id),
        related_department_ids=frozenset(str(d) for d in related),
        restrict_to_department=restrict,
    )


SearchServiceDep = Annotated[SearchService, Depends(get_search_service)]
ReindexServiceDep = Annotated[ReindexService, Depends(get_reindex_service)]
AgencyServiceDep = Annotated[AgencyService, Depends(get_agency_service)]
DepartmentServiceDep = Annotated[DepartmentService, Depends(get_department_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
CallerScopeDep = Annotated[CallerScope, Depends(get_caller_scope)]

__all__ = [
    "AgencyServiceDep",
    "CallerScopeDep",
    "DepartmentServiceDep",
    "IndexerDep",
    "ReindexServiceDep",
    "SearchServiceDep",
    "SessionDep",
    "UserServiceDep",
    "get_current_user",
    "get_session",
]
