"""Department API routes."""

from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from ppdo.api.deps import DepartmentServiceDep
from ppdo.api.middleware.auth import CurrentUser, RequireAdmin
from ppdo.infrastructure.database.models.department import Department

router = APIRouter(prefix="/departments", tags=["Departments"])


# ----- Request/Response Schemas -----


class DepartmentCreateRequest(BaseModel):
    """Create department request."""

    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    description: str | None = None
    parent_department_id: UUID | None = None
    head_user_id: UUID | None = None
    is_active: bool = True


class DepartmentUpdateRequest(BaseModel):
    """Update department request."""

    name: str | None = Field(None, min_length=1, max_length=255)
    code: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = None
    parent_department_id: UUID | None = None
    head_user_id: UUID | None = None
    is_active: bool | None = None


class DepartmentResponse(BaseModel):
    """Department response schema."""

    id: str
    name: str
    code: str
    description: str | None
    parent_department_id: str | None
    head_user_id: str | None
    is_active: bool
    created_at: str
    updated_at: str


class DepartmentListResponse(BaseModel):
    items: list[DepartmentResponse]
    total: int
    limit: int
    offset: int


def _department_to_response(department: Department) -> DepartmentResponse:
    return DepartmentResponse(
        id=str(department.id),
        name=department.name,
        code=department.code,
        description=department.description,
        parent_department_id=(
            str(department.parent_department_id) if department.parent_department_id else None
        ),
        head_user_id=str(department.head_user_id) if department.head_user_id else None,
        is_active=department.is_active,
        created_at=department.created_at.isoformat(),
        updated_at=department.updated_at.isoformat(),
    )


# ----- Routes -----


@router.post("", response_model=DepartmentResponse, status_code=201)
async def create_department(
    user: RequireAdmin,
    service: DepartmentServiceDep,
    request: DepartmentCreateRequest,
) -> DepartmentResponse:
    """Create a department."""
    department = await service.create_department(
        request.name,
        request.code,
        created_by=user.uuid,
        description=request.description,
        parent_department_id=request.parent_department_id,
        head_user_id=request.head_user_id,
        is_active=request.is_active,
    )
    return _department_to_response(department)


@router.get("", response_model=DepartmentListResponse)
async def list_departments(
    user: CurrentUser,
    service: DepartmentServiceDep,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> DepartmentListResponse:
    departments = await service.list_departments(limit=limit, offset=offset)
    total = await service.department_repo.count()
    return DepartmentListResponse(
        items=[_department_to_response(d) for d in departments],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{department_id}", response_model=DepartmentResponse)
async def get_department(
    department_id: UUID,
    user: CurrentUser,
    service: DepartmentServiceDep,
) -> DepartmentResponse:
    return _department_to_response(await service.get_department(department_id))


@router.patch("/{department_id}", response_model=DepartmentResponse)
async def update_department(
    department_id: UUID,
    user: RequireAdmin,
    service: DepartmentServiceDep,
    request: DepartmentUpdateRequest,
) -> DepartmentResponse:
    """Update a department."""
    department = await service.update_department(
        department_id, **request.model_dump(exclude_unset=True)
    )
    return _department_to_response(department)


@router.delete("/{department_id}", status_code=204)
async def delete_department(
    department_id: UUID,
    user: RequireAdmin,
    service: DepartmentServiceDep,
) -> None:
    """Delete a department."""
    await service.delete_department(department_id)
