"""Authentication dependencies for FastAPI."""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ppdo.config import Settings, get_settings
from ppdo.infrastructure.auth.provider import AuthProvider, AuthUser
from ppdo.shared.exceptions import (
    AuthenticationError,
    TokenExpiredError,
    TokenInvalidError,
)
from ppdo.shared.logging import bind_request_user, get_logger

logger = get_logger(__name__)

ADMIN_ROLES = ("super_admin", "admin")

# HTTP Bearer scheme
security = HTTPBearer(auto_error=False)


def build_auth_provider(settings: Settings) -> AuthProvider:
    """Build the configured auth provider.

    Set AUTH_PROVIDER=dev for local testing without an identity service.
    """
    if settings.auth_provider == "dev":
        from ppdo.infrastructure.auth.dev import DevAuthProvider

        return DevAuthProvider()

    from ppdo.infrastructure.auth.jwt_provider import JWTAuthProvider

    return JWTAuthProvider(settings)


def get_auth_provider(request: Request) -> AuthProvider:
    """Get a cached auth provider instance (per FastAPI app)."""
    provider = getattr(request.app.state, "auth_provider", None)
    if provider is None:
        provider = build_auth_provider(get_settings())
        request.app.state.auth_provider = provider
    return provider


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    auth_provider: Annotated[AuthProvider, Depends(get_auth_provider)],
) -> AuthUser:
    """Dependency to get the current authenticated user.

    Usage:
        @router.get("/me")
        async def get_me(user: CurrentUser):
            return {"email": user.email}
    """
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user = await auth_provider.verify_token(credentials.credentials)
    except TokenExpiredError:
        raise HTTPException(
            status_code=401,
            detail="Token expired. Please sign in again.",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except TokenInvalidError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e.message),
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except AuthenticationError as e:
        logger.warning("auth_failed", error=str(e))
        raise HTTPException(
            status_code=401,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    bind_request_user(
        user.id,
        user.role,
        str(user.department_id) if user.department_id else None,
    )
    # Rate limiter keys on the authenticated user
    request.state.user = user

    logger.debug("user_authenticated", user_id=user.id, role=user.role)
    return user


def require_role(*roles: str) -> Callable[[AuthUser], Awaitable[AuthUser]]:
    """Dependency factory to require specific roles.

    Usage:
        @router.post("/reindex")
        async def reindex(user: Annotated[AuthUser, Depends(require_role("super_admin"))]):
            ...
    """

    async def check_role(
        user: Annotated[AuthUser, Depends(get_current_user)],
    ) -> AuthUser:
        if user.role not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"This action requires one of the roles: {', '.join(roles)}",
            )
        return user

    return check_role


# Common role dependencies
RequireAdmin = Annotated[AuthUser, Depends(require_role(*ADMIN_ROLES))]

# Type alias for authenticated user
CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
