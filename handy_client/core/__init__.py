"""Core primitives for handy-client."""

from .errors import (
    DeviceError,
    HandyError,
    InvalidInputError,
    MissingCredentialError,
    ProjectionError,
    TransportError,
)
from .events import ClientEvents, Signal
from .models import (
    DeviceStatus,
    FileKind,
    LogMode,
    Mode,
    PatternPoint,
    PlaybackState,
    PublishedFile,
    SpatialReading,
    VersionInfo,
)
from .protocols import Transport
from .results import CommandResult

__all__ = [
    "ClientEvents",
    "CommandResult",
    "DeviceError",
    "DeviceStatus",
    "FileKind",
    "HandyError",
    "InvalidInputError",
    "LogMode",
    "MissingCredentialError",
    "Mode",
    "PatternPoint",
    "PlaybackState",
    "ProjectionError",
    "PublishedFile",
    "Signal",
    "SpatialReading",
    "Transport",
    "TransportError",
    "VersionInfo",
]
