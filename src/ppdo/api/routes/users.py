"""User management API routes."""

from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from ppdo.api.deps import UserServiceDep
from ppdo.api.middleware.auth import RequireAdmin
from ppdo.infrastructure.database.models.user import User, UserRole, UserStatus

router = APIRouter(prefix="/users", tags=["Users"])


# ----- Request/Response Schemas -----


class UserCreateRequest(BaseModel):
    """Create user request."""

    email: str | None = Field(None, max_length=255)
    first_name: str | None = Field(None, max_length=100)
    middle_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    name_extension: str | None = Field(None, max_length=20)
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE
    department_id: UUID | None = None
    position: str | None = None


class UserUpdateRequest(BaseModel):
    """Update user request."""

    email: str | None = Field(None, max_length=255)
    first_name: str | None = Field(None, max_length=100)
    middle_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    name_extension: str | None = Field(None, max_length=20)
    role: UserRole | None = None
    status: UserStatus | None = None
    department_id: UUID | None = None
    position: str | None = None


class UserResponse(BaseModel):
    """User response schema."""

    id: str
    email: str | None
    full_name: str
    role: UserRole
    status: UserStatus
    department_id: str | None
    position: str | None
    created_at: str
    updated_at: str


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
    limit: int
    offset: int


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        email=user.email,
        full_name=user.full_name,
        role=UserRole(user.role),
        status=UserStatus(user.status),
        department_id=str(user.department_id) if user.department_id else None,
        position=user.position,
        created_at=user.created_at.isoformat(),
        updated_at=user.updated_at.isoformat(),
    )


# ----- Routes -----


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    user: RequireAdmin,
    service: UserServiceDep,
    request: UserCreateRequest,
) -> UserResponse:
    """Create a user account."""
    created = await service.create_user(
        created_by=user.uuid,
        **request.model_dump(),
    )
    return _user_to_response(created)


@router.get("", response_model=UserListResponse)
async def list_users(
    user: RequireAdmin,
    service: UserServiceDep,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> UserListResponse:
    users = await service.list_users(limit=limit, offset=offset)
    total = await service.user_repo.count()
    return UserListResponse(
        items=[_user_to_response(u) for u in users],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    user: RequireAdmin,
    service: UserServiceDep,
) -> UserResponse:
    return _user_to_response(await service.get_user(user_id))


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    user: RequireAdmin,
    service: UserServiceDep,
    request: UserUpdateRequest,
) -> UserResponse:
    """Update a user account."""
    updated = await service.update_user(user_id, **request.model_dump(exclude_unset=True))
    return _user_to_response(updated)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: UUID,
    user: RequireAdmin,
    service: UserServiceDep,
) -> None:
    """Delete a user account."""
    await service.delete_user(user_id)
