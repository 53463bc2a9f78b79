"""Error types shared across the engine.

Every error carries an ``ErrorCode`` and a ``recoverable`` flag. Recoverable
errors (registry outages, busy slot) can be retried by the user or by the
next stale check; non-recoverable ones need intervention.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    REGISTRY_UNAVAILABLE = "REGISTRY_UNAVAILABLE"
    INSTALL_FAILED = "INSTALL_FAILED"
    REMOVE_FAILED = "REMOVE_FAILED"
    OPERATION_BUSY = "OPERATION_BUSY"
    STATUS_INVARIANT = "STATUS_INVARIANT"


class HpmError(Exception):
    """Base class for all engine errors."""

    def __init__(self, code: ErrorCode, message: str, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def __str__(self) -> str:
        return self.message


class TransportError(HpmError):
    """Registry unreachable or returned a malformed payload."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.REGISTRY_UNAVAILABLE, message, recoverable=True)


class InstallError(HpmError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.INSTALL_FAILED, message, recoverable=False)


class RemoveError(HpmError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.REMOVE_FAILED, message, recoverable=False)


class OperationBusyError(HpmError):
    """A busy state was requested while another operation is in flight."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.OPERATION_BUSY, message, recoverable=True)


class StatusInvariantError(HpmError):
    """The status slot was found in a state its owner did not leave it in.

    Raised when cleanup cannot return the slot to ``Idle`` safely. This
    would otherwise wedge every later operation, so it is never caught
    inside the engine.
    """

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.STATUS_INVARIANT, message, recoverable=False)
