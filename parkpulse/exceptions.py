"""Typed failures returned by the booking core.

Each error carries a stable ``code`` so the presentation layer can tell a
business outcome ("someone got there first") apart from a system fault
("try again").
"""


class ParkPulseError(Exception):
    """Base class for every failure the core reports to its callers."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationError(ParkPulseError):
    """Malformed input: bad time string, non-positive rate, inverted window."""

    code = "validation_error"


class NotFoundError(ParkPulseError):
    """The addressed listing or booking does not exist."""

    code = "not_found"


class ConflictError(ParkPulseError):
    """A legitimate business refusal caused by overlapping schedules."""

    code = "conflict"


class DuplicateListingError(ConflictError):
    """The same spot is already listed for overlapping hours on that day."""

    code = "duplicate_listing"


class ConcurrentUpdateError(ConflictError):
    """The record changed underneath the transition; it was not applied."""

    code = "concurrent_update"


class IllegalTransitionError(ParkPulseError):
    """The booking's current status does not allow the requested action."""

    code = "illegal_transition"

    def __init__(self, status: str, action: str) -> None:
        super().__init__(f"Cannot {action.replace('_', ' ')} a booking that is {status.replace('_', ' ')}.")
        self.status = status
        self.action = action


class DependencyError(ParkPulseError):
    """The store or another external collaborator is unavailable."""

    code = "dependency_unavailable"
