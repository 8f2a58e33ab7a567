# core/errors.py
"""
Typed failures raised by the custody engine.

Every error is recoverable and user-facing. Views translate them into HTTP
responses; nothing in the engine catches and hides them.
"""


class CustodyError(Exception):
    """Base class for all custody engine errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"error": type(self).__name__, "message": self.message}


class PolicyViolation(CustodyError):
    """A business rule forbids the attempted operation."""


class ConflictingAssignment(CustodyError):
    """The holder already holds another asset of the same category."""

    def __init__(self, message: str, conflicting_serial: str):
        super().__init__(message)
        self.conflicting_serial = conflicting_serial

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["conflicting_serial"] = self.conflicting_serial
        return detail


class RedundantAction(CustodyError):
    """
    The requested transition equals the current custody state.

    The state has already converged, so callers must not retry.
    """

    def __init__(self, message: str, current_status: str):
        super().__init__(message)
        self.current_status = current_status

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["current_status"] = self.current_status
        return detail


class NotFound(CustodyError):
    """A referenced holder or asset key does not exist."""


class AlreadyExists(CustodyError):
    """A holder code or serial is already registered."""


class StoreUnavailable(CustodyError):
    """
    The entity store failed or could not settle a write.

    Reads may be retried by the caller. Writes must be checked for having
    landed before retrying.
    """
