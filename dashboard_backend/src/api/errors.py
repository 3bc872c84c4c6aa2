from __future__ import annotations

from typing import Optional


class DashboardError(Exception):
    """Base class for errors raised by the dashboard core."""

    code = "DashboardError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RecordStoreError(DashboardError):
    """The Record Store rejected or failed an operation."""

    code = "RecordStoreError"


class InvalidInput(DashboardError):
    """Input rejected before any write was attempted."""

    code = "InvalidInput"


class WriteFailed(DashboardError):
    """
    A mutation could not be persisted. ``message`` is safe to show to the user;
    the underlying store error is kept as ``__cause__``.
    """

    code = "WriteFailed"


class UnknownRecord(DashboardError):
    """The id is not present in the session cache."""

    code = "UnknownRecord"


class NotSignedIn(DashboardError):
    """A mutation was attempted without a user identity."""

    code = "NotSignedIn"


class ErrorReport:
    """
    The user-visible error slot of a session (the error dialog).

    Handlers record the message of the last failed write; the surface shows it
    until it is dismissed.
    """

    def __init__(self) -> None:
        self.message: Optional[str] = None

    def report(self, message: str) -> None:
        self.message = message

    def dismiss(self) -> None:
        self.message = None
