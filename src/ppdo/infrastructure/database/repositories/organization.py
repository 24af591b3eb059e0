"""Repositories for departments, users and implementing agencies."""

from uuid import UUID

from sqlalchemy import func, or_, select

from ppdo.infrastructure.database.models.agency import ImplementingAgency
from ppdo.infrastructure.database.models.department import Department
from ppdo.infrastructure.database.models.user import User
from ppdo.infrastructure.database.repositories.base import BaseRepository


class DepartmentRepository(BaseRepository[Department]):
    """Repository for Department entities."""

    model_class = Department

    async def get_by_code(self, code: str) -> Department | None:
        result = await self.session.execute(
            select(Department).where(Department.code == code)
        )
        return result.scalar_one_or_none()

    async def get_children(self, department_id: UUID) -> list[Department]:
        result = await self.session.execute(
            select(Department).where(Department.parent_department_id == department_id)
        )
        return list(result.scalars().all())

    async def get_related_ids(self, department_id: UUID) -> set[UUID]:
        """Parent, children and siblings of a department (excluding itself)."""
        department = await self.get_by_id(department_id)
        if department is None:
            return set()

        conditions = [Department.parent_department_id == department_id]
        related: set[UUID] = set()
        if department.parent_department_id is not None:
            related.add(department.parent_department_id)
            conditions.append(
                Department.parent_department_id == department.parent_department_id
            )

        result = await self.session.execute(select(Department.id).where(or_(*conditions)))
        related.update(row[0] for row in result.all())
        related.discard(department_id)
        return related


class UserRepository(BaseRepository[User]):
    """Repository for User entities."""

    model_class = User

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def count_searchable(self) -> int:
        """Count users with an email, the only ones mirrored into search."""
        result = await self.session.execute(
            select(func.count()).select_from(User).where(User.email.is_not(None), User.email != "")
        )
        return result.scalar_one()


class ImplementingAgencyRepository(BaseRepository[ImplementingAgency]):
    """Repository for ImplementingAgency entities."""

    model_class = ImplementingAgency

    async def get_by_code(self, code: str) -> ImplementingAgency | None:
        result = await self.session.execute(
            select(ImplementingAgency).where(ImplementingAgency.code == code)
        )
        return result.scalar_one_or_none()
