"""Abstract authentication provider interface.

The rest of the application only sees ``AuthUser``; swapping the identity
provider means writing another ``AuthProvider``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class AuthUser:
    """Authenticated user data from the auth provider."""

    id: str  # Provider's user ID
    email: str
    role: str  # super_admin, admin, user or inspector
    department_id: UUID | None = None
    full_name: str | None = None

    @property
    def uuid(self) -> UUID | None:
        """The user ID as a UUID, or None for non-UUID provider IDs."""
        return UUID(self.id) if self._is_uuid(self.id) else None

    @staticmethod
    def _is_uuid(value: str) -> bool:
        try:
            UUID(value)
            return True
        except ValueError:
            return False


class AuthProvider(ABC):
    """Abstract authentication provider.

    Implementations:
    - JWTAuthProvider: HS256 bearer tokens issued by the identity service
    - DevAuthProvider: fixed local user for development
    """

    @abstractmethod
    async def verify_token(self, token: str) -> AuthUser:
        """Verify a bearer token and return the authenticated user.

        Raises:
            TokenExpiredError: If the token has expired
            TokenInvalidError: If the token is invalid
            AuthenticationError: For other auth failures
        """

    async def close(self) -> None:
        """Release provider resources."""
