"""
═══════════════════════════════════════════════════════════════════════════════
Vrai — Domain error hierarchy (Custom Exception Hierarchy)
═══════════════════════════════════════════════════════════════════════════════

Base class ``VraiError``. Codes are mapped to HTTP statuses in
``vrai.main:vrai_error_handler``; every handler renders the same JSON
envelope ``{error, message, code, details, timestamp}``.
"""


class VraiError(Exception):
    """
    Base exception for every domain error.

    Attributes
    ──────────
        message (str):  Human readable description, sent to the client.
        code (str):     String code, mapped to an HTTP status.
        details (dict): Extra data (entity, id, field and so on).
    """

    def __init__(
        self,
        message: str,
        code: str = "VRAI_ERROR",
        details: dict | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(VraiError):
    """Missing or invalid bearer token, no active session: 401."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="VRAI_AUTH_ERROR")


class AuthorizationError(VraiError):
    """Authenticated caller without the required privilege: 403."""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, code="VRAI_AUTHZ_ERROR")


class NotFoundError(VraiError):
    """Referenced record is absent: 404."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            message=f"{entity} not found: {entity_id}",
            code="VRAI_NOT_FOUND",
            details={"entity": entity, "id": entity_id},
        )


class ConflictError(VraiError):
    """Operation conflicts with the current state of a record: 409."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="VRAI_CONFLICT", details=details)


class ValidationError(VraiError):
    """Missing fields, wrong file type or count, incomplete photo set: 400."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="VRAI_VALIDATION_ERROR", details=details)


class PreconditionError(VraiError):
    """An operation was invoked before the step it depends on: 400."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="VRAI_PRECONDITION_FAILED", details=details)


class RemoteServiceError(VraiError):
    """The hosted platform call failed; upstream message is passed through: 500."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="VRAI_REMOTE_ERROR", details=details)


__all__ = [
    "VraiError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "PreconditionError",
    "RemoteServiceError",
]
