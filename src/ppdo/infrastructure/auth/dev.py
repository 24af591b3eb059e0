"""Development authentication provider for local testing.

This provider bypasses real authentication and returns a fixed user.
NEVER use in production!
"""

from ppdo.infrastructure.auth.provider import AuthProvider, AuthUser
from ppdo.shared.logging import get_logger

logger = get_logger(__name__)

# Fixed ID for development
DEV_USER_ID = "00000000-0000-0000-0000-000000000001"


class DevAuthProvider(AuthProvider):
    """Development auth provider that accepts any token."""

    async def verify_token(self, token: str) -> AuthUser:
        """Accept any token and return the dev super admin."""
        logger.warning(
            "dev_auth_used",
            message="Using development auth - DO NOT USE IN PRODUCTION",
        )

        return AuthUser(
            id=DEV_USER_ID,
            email="dev@ppdo.local",
            role="super_admin",
            full_name="Dev User",
        )
