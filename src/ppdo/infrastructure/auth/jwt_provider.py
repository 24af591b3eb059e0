"""JWT bearer token provider."""

from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from ppdo.config import Settings, get_settings
from ppdo.infrastructure.auth.provider import AuthProvider, AuthUser
from ppdo.shared.exceptions import TokenExpiredError, TokenInvalidError
from ppdo.shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ROLE = "user"


class JWTAuthProvider(AuthProvider):
    """Verifies tokens signed with the shared secret.

    Role and department come from ``app_metadata`` (set by the identity
    service), falling back to ``user_metadata``.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.jwt_secret = settings.auth_jwt_secret
        self.algorithm = settings.auth_jwt_algorithm
        self.audience = settings.auth_jwt_audience

    async def verify_token(self, token: str) -> AuthUser:
        """Verify the JWT and extract user info."""
        if not self.jwt_secret:
            raise TokenInvalidError("Token verification is not configured")
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.algorithm],
                audience=self.audience,
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired") from None
        except JWTError as e:
            logger.warning("jwt_decode_failed", error=str(e))
            raise TokenInvalidError("Token is invalid") from None

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            raise TokenInvalidError("Token carries no user ID or email")

        claims: dict[str, Any] = {
            **(payload.get("user_metadata") or {}),
            **(payload.get("app_metadata") or {}),
        }
        return AuthUser(
            id=str(user_id),
            email=email,
            role=claims.get("role") or DEFAULT_ROLE,
            department_id=self._parse_department(claims.get("department_id")),
            full_name=claims.get("full_name"),
        )

    @staticmethod
    def _parse_department(value: Any) -> UUID | None:
        if not value:
            return None
        try:
            return UUID(str(value))
        except ValueError:
            raise TokenInvalidError("Token carries a malformed department ID") from None
