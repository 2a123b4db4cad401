"""Error taxonomy for device commands."""

from __future__ import annotations


class HandyError(RuntimeError):
    """Base class for every failure reported by the client."""

    def __init__(self, message: str, *, command: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.command = command


class MissingCredentialError(HandyError):
    """Raised when a command is attempted without a connection key."""


class DeviceError(HandyError):
    """Raised when a response reports failure or lacks a success flag."""


class TransportError(DeviceError):
    """Raised when the request never produced a usable HTTP response."""


class ProjectionError(HandyError):
    """Raised when a successful response cannot be turned into a result."""


class InvalidInputError(HandyError):
    """Raised when caller-supplied data is rejected before any network activity."""
