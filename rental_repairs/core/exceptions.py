"""
Domain and service exceptions.

Invariant violations are raised; business rejections (specialization
mismatch, unit conflict, capacity, rate limit) are returned as result objects
and never appear here.
"""
from typing import Any, Optional


class DomainError(Exception):
    """Base class for non-retryable business-rule violations."""

    code = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "detail": self.message}


class InvalidTransitionError(DomainError):
    """A lifecycle operation was attempted from a state that does not allow it."""

    code = "invalid_transition"

    def __init__(self, current_status, operation: str, message: Optional[str] = None):
        self.current_status = current_status
        self.operation = operation
        status_name = getattr(current_status, "value", current_status)
        super().__init__(
            message
            or f"Cannot {operation} a request in {status_name} status"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["current_status"] = getattr(self.current_status, "value", self.current_status)
        data["operation"] = self.operation
        return data


class TenantRequestValidationError(DomainError):
    """Malformed tenant request data (title, description, reason, ...)."""

    code = "invalid_request_data"


class InvalidAssignmentError(DomainError):
    """Malformed or inadmissible work assignment parameters."""

    code = "invalid_assignment"

    def __init__(self, field: str, value: Any, message: str):
        self.field = field
        self.value = value
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["field"] = self.field
        return data


class AssignmentNotFoundError(DomainError):
    code = "assignment_not_found"


class NotFoundError(Exception):
    """A request or worker referenced by the caller does not exist."""

    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} '{key}' not found")


class ConcurrencyConflictError(Exception):
    """The persistence boundary rejected a write twice in a row."""

    def __init__(self, message: str = "The schedule changed while saving. Please retry."):
        super().__init__(message)
        self.message = message


class DuplicateWorkerError(DomainError):
    code = "duplicate_worker"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"A worker with email {email} is already registered")
