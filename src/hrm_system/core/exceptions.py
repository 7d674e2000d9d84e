class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is malformed (date range, pay period, config)."""


class NotFoundError(DomainError):
    """Raised when a referenced employee, request or record does not exist."""


class ForbiddenError(DomainError):
    """Raised when the actor lacks ownership or permission for an action."""


class ConflictError(DomainError):
    """Raised when a request conflicts with the current state of the data."""


class OverlapError(ConflictError):
    """Leave window overlaps another pending/approved request."""


class InsufficientBalanceError(ConflictError):
    """Requested days exceed the remaining leave balance."""


class InvalidTransitionError(ConflictError):
    """Status change not allowed from the current status."""


class AlreadyCancelledError(ConflictError):
    """Leave request is already cancelled."""


class TooLateError(ConflictError):
    """Approved leave that has already started can no longer be cancelled."""
