"""
Platform-wide exception hierarchy.

Services raise these types; the app-level handlers in
``ictforum.utils.errors`` translate them into JSON error responses with a
stable HTTP status and machine-readable code. Blueprints never build error
responses for business-rule failures themselves.

Usage:
    from ictforum.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Suggestion", resource_id=sid)
    raise ValidationError("Invalid category", details={"category": "..."})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Suggestion", "Department").
        resource_id: The id that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is malformed or violates a business rule.

    Covers out-of-range values, unknown enumeration members, length bounds
    and references to inactive or unknown departments. Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown, keyed by field name.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would violate a uniqueness or reference rule.

    Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The field that conflicts.
        value: The conflicting value.
        message: Optional override for the default "already exists" text.
    """

    def __init__(
        self,
        resource: str,
        field: str,
        value: str | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = message or f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class AuthenticationError(Exception):
    """Raised when a credential is missing, expired or invalid. Maps to HTTP 401."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class StorageError(Exception):
    """Raised when the blob store or the database fails an I/O operation.

    Maps to HTTP 502. The original exception, when there is one, is kept
    on ``__cause__`` via ``raise ... from``.
    """

    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(message)
