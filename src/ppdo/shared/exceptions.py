"""Custom exception hierarchy for the PPDO backend."""

from typing import Any


class PPDOError(Exception):
    """Base exception for all PPDO errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ----- Authentication Errors -----


class AuthenticationError(PPDOError):
    """Authentication failed."""

    pass


class TokenExpiredError(AuthenticationError):
    """JWT token has expired."""

    pass


class TokenInvalidError(AuthenticationError):
    """JWT token is invalid."""

    pass


class UnauthorizedError(PPDOError):
    """User is not authorized to perform this action."""

    pass


# ----- Resource Errors -----


class NotFoundError(PPDOError):
    """Requested resource was not found."""

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(
            message=f"{resource} not found",
            details={"resource": resource, "identifier": identifier},
        )


class ConflictError(PPDOError):
    """Resource conflict (e.g., duplicate code or email)."""

    pass


# ----- Validation Errors -----


class ValidationError(PPDOError):
    """Input validation failed."""

    pass


class IndexingValidationError(ValidationError):
    """An index write was requested with missing or malformed fields."""

    def __init__(self, field: str, reason: str, entity_id: str | None = None) -> None:
        super().__init__(
            message=f"Cannot index entity: {field} {reason}",
            details={"field": field, "reason": reason, "entity_id": entity_id},
        )


class InvalidSearchFilterError(ValidationError):
    """A search filter value is not recognised."""

    def __init__(self, filter_name: str, value: str, allowed: list[str] | None = None) -> None:
        details: dict[str, Any] = {"filter": filter_name, "value": value}
        if allowed:
            details["allowed"] = allowed
        super().__init__(
            message=f"Unknown {filter_name} '{value}'",
            details=details,
        )


# ----- Search Errors -----


class IndexingError(PPDOError):
    """Writing to the search index failed."""

    pass
