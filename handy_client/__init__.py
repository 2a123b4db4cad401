"""Asynchronous client for the Handy HTTP control API."""

from .client import HandyClient
from .config import HandyConfig, load_config
from .core import (
    ClientEvents,
    CommandResult,
    DeviceError,
    DeviceStatus,
    FileKind,
    HandyError,
    InvalidInputError,
    LogMode,
    MissingCredentialError,
    Mode,
    PatternPoint,
    PlaybackState,
    ProjectionError,
    PublishedFile,
    SpatialReading,
    TransportError,
    VersionInfo,
)

__all__ = [
    "ClientEvents",
    "CommandResult",
    "DeviceError",
    "DeviceStatus",
    "FileKind",
    "HandyClient",
    "HandyConfig",
    "HandyError",
    "InvalidInputError",
    "LogMode",
    "MissingCredentialError",
    "Mode",
    "PatternPoint",
    "PlaybackState",
    "ProjectionError",
    "PublishedFile",
    "SpatialReading",
    "TransportError",
    "VersionInfo",
    "load_config",
]
