"""Custom exception hierarchy for the chore ledger."""

from __future__ import annotations

from decimal import Decimal


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Serialize the error in the API standard shape."""
        return {"error": self.message, "code": self.code}


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str) -> None:
        super().__init__(message=f"{resource} not found", code="NOT_FOUND", status_code=404)


class ForbiddenError(AppError):
    """Raised when the user lacks permission for the action."""

    def __init__(self, reason: str = "You don't have permission", code: str = "FORBIDDEN") -> None:
        super().__init__(message=reason, code=code, status_code=403)


class NotAuthorizedError(ForbiddenError):
    """Raised when the actor's role does not allow the requested status change."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason=reason, code="NOT_AUTHORIZED")


class ConflictError(AppError):
    """Raised on duplicate/conflicting operations."""

    def __init__(self, reason: str, code: str = "CONFLICT") -> None:
        super().__init__(message=reason, code=code, status_code=409)


class InvalidTransitionError(ConflictError):
    """Raised when the status machine rejects a requested move."""

    def __init__(self, current: str, desired: str) -> None:
        self.current = current
        self.desired = desired
        super().__init__(
            f"Cannot move a chore from {current} to {desired}",
            code="INVALID_TRANSITION",
        )


class ConcurrencyConflictError(ConflictError):
    """Raised when a chore log was changed by someone else since it was read."""

    def __init__(
        self,
        reason: str = "This chore was modified concurrently. Refresh and try again.",
    ) -> None:
        super().__init__(reason, code="CONCURRENCY_CONFLICT")


class PersistenceError(AppError):
    """Raised when the underlying storage fails."""

    def __init__(self, reason: str = "Storage request failed") -> None:
        super().__init__(message=reason, code="PERSISTENCE_FAILURE", status_code=503)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        super().__init__(message=reason, code="UNAUTHORIZED", status_code=401)


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=reason, code="INVALID_INPUT", status_code=422)


class InsufficientFundsError(AppError):
    """Raised when an account cannot cover a debit."""

    def __init__(self, required: Decimal, available: Decimal) -> None:
        self.required = required
        self.available = available
        super().__init__(
            message=f"Insufficient balance: need {required}, have {available}",
            code="INSUFFICIENT_FUNDS",
        )
