"""User account service."""

from collections.abc import Sequence
from uuid import UUID

from ppdo.domain.search.indexing import SearchIndexer
from ppdo.domain.search.types import EntityType
from ppdo.infrastructure.database.models.user import User, UserRole, UserStatus
from ppdo.infrastructure.database.repositories.organization import UserRepository
from ppdo.shared.exceptions import ConflictError, NotFoundError
from ppdo.shared.logging import get_logger

logger = get_logger(__name__)


class UserService:
    """User management.

    Only users with an email are searchable; a user who loses their email is
    removed from the index rather than updated.
    """

    def __init__(self, user_repo: UserRepository, indexer: SearchIndexer) -> None:
        self.user_repo = user_repo
        self.indexer = indexer

    async def create_user(
        self,
        *,
        email: str | None,
        first_name: str | None = None,
        middle_name: str | None = None,
        last_name: str | None = None,
        name_extension: str | None = None,
        role: UserRole = UserRole.USER,
        status: UserStatus = UserStatus.ACTIVE,
        department_id: UUID | None = None,
        position: str | None = None,
        created_by: UUID | None = None,
    ) -> User:
        email = self._clean_email(email)
        if email and await self.user_repo.get_by_email(email):
            raise ConflictError("Email already registered", {"email": email})

        user = User(
            email=email,
            first_name=first_name,
            middle_name=middle_name,
            last_name=last_name,
            name_extension=name_extension,
            role=role,
            status=status,
            department_id=department_id,
            position=position,
            created_by=created_by,
        )
        user = await self.user_repo.create(user)
        await self._mirror(user)

        logger.info("user_created", user_id=str(user.id), role=UserRole(user.role).value)
        return user

    async def get_user(self, user_id: UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    async def list_users(self, limit: int = 50, offset: int = 0) -> Sequence[User]:
        return await self.user_repo.get_all(limit=limit, offset=offset)

    async def update_user(
        self,
        user_id: UUID,
        *,
        email: str | None = None,
        first_name: str | None = None,
        middle_name: str | None = None,
        last_name: str | None = None,
        name_extension: str | None = None,
        role: UserRole | None = None,
        status: UserStatus | None = None,
        department_id: UUID | None = None,
        position: str | None = None,
    ) -> User:
        user = await self.get_user(user_id)

        if email is not None:
            cleaned = self._clean_email(email)
            if cleaned and cleaned != user.email:
                existing = await self.user_repo.get_by_email(cleaned)
                if existing and existing.id != user.id:
                    raise ConflictError("Email already registered", {"email": cleaned})
            user.email = cleaned
        if first_name is not None:
            user.first_name = first_name
        if middle_name is not None:
            user.middle_name = middle_name
        if last_name is not None:
            user.last_name = last_name
        if name_extension is not None:
            user.name_extension = name_extension
        if role is not None:
            user.role = role
        if status is not None:
            user.status = status
        if department_id is not None:
            user.department_id = department_id
        if position is not None:
            user.position = position

        user = await self.user_repo.update(user)
        await self._mirror(user)

        logger.info("user_updated", user_id=str(user_id))
        return user

    async def delete_user(self, user_id: UUID) -> None:
        """Hard delete a user and drop them from the index."""
        user = await self.get_user(user_id)
        await self.user_repo.delete(user)
        await self.indexer.remove(str(user_id), EntityType.USER)

        logger.info("user_deleted", user_id=str(user_id))

    async def _mirror(self, user: User) -> None:
        if user.is_searchable:
            await self.indexer.sync(user)
        else:
            await self.indexer.remove(str(user.id), EntityType.USER)

    @staticmethod
    def _clean_email(email: str | None) -> str | None:
        if email is None:
            return None
        return email.strip().lower() or None
