"""Implementing agency API routes."""

from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from ppdo.api.deps import AgencyServiceDep
from ppdo.api.middleware.auth import CurrentUser, RequireAdmin
from ppdo.infrastructure.database.models.agency import ImplementingAgency

router = APIRouter(prefix="/agencies", tags=["Agencies"])


# ----- Request/Response Schemas -----


class AgencyCreateRequest(BaseModel):
    """Create agency request."""

    code: str = Field(..., min_length=1, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=255)
    agency_type: str = "internal"
    description: str | None = None
    department_id: UUID | None = None
    is_active: bool = True


class AgencyUpdateRequest(BaseModel):
    """Update agency request."""

    code: str | None = Field(None, min_length=1, max_length=50)
    full_name: str | None = Field(None, min_length=1, max_length=255)
    agency_type: str | None = None
    description: str | None = None
    department_id: UUID | None = None
    is_active: bool | None = None


class AgencyResponse(BaseModel):
    """Agency response schema."""

    id: str
    code: str
    full_name: str
    agency_type: str
    description: str | None
    department_id: str | None
    is_active: bool
    created_at: str
    updated_at: str


class AgencyListResponse(BaseModel):
    items: list[AgencyResponse]
    total: int
    limit: int
    offset: int


def _agency_to_response(agency: ImplementingAgency) -> AgencyResponse:
    return AgencyResponse(
        id=str(agency.id),
        code=agency.code,
        full_name=agency.full_name,
        agency_type=agency.agency_type,
        description=agency.description,
        department_id=str(agency.department_id) if agency.department_id else None,
        is_active=agency.is_active,
        created_at=agency.created_at.isoformat(),
        updated_at=agency.updated_at.isoformat(),
    )


# ----- Routes -----


@router.post("", response_model=AgencyResponse, status_code=201)
async def create_agency(
    user: RequireAdmin,
    service: AgencyServiceDep,
    request: AgencyCreateRequest,
) -> AgencyResponse:
    """Create an implementing agency."""
    agency = await service.create_agency(
        request.code,
        request.full_name,
        created_by=user.uuid,
        agency_type=request.agency_type,
        description=request.description,
        department_id=request.department_id,
        is_active=request.is_active,
    )
    return _agency_to_response(agency)


@router.get("", response_model=AgencyListResponse)
async def list_agencies(
    user: CurrentUser,
    service: AgencyServiceDep,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> AgencyListResponse:
    agencies = await service.list_agencies(limit=limit, offset=offset)
    total = await service.agency_repo.count()
    return AgencyListResponse(
        items=[_agency_to_response(a) for a in agencies],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{agency_id}", response_model=AgencyResponse)
async def get_agency(
    agency_id: UUID,
    user: CurrentUser,
    service: AgencyServiceDep,
) -> AgencyResponse:
    return _agency_to_response(await service.get_agency(agency_id))


@router.patch("/{agency_id}", response_model=AgencyResponse)
async def update_agency(
    agency_id: UUID,
    user: RequireAdmin,
    service: AgencyServiceDep,
    request: AgencyUpdateRequest,
) -> AgencyResponse:
    """Update an implementing agency."""
    agency = await service.update_agency(agency_id, **request.model_dump(exclude_unset=True))
    return _agency_to_response(agency)


@router.delete("/{agency_id}", status_code=204)
async def delete_agency(
    agency_id: UUID,
    user: RequireAdmin,
    service: AgencyServiceDep,
) -> None:
    """Delete an implementing agency."""
    await service.delete_agency(agency_id)
