"""Authentication infrastructure."""

from ppdo.infrastructure.auth.provider import AuthProvider, AuthUser

__all__ = [
    "AuthProvider",
    "AuthUser",
]
