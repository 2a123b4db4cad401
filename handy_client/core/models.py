"""Domain value types shared by the client layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class Mode(IntEnum):
    """Operating mode of the device, using the wire values of the API."""

    OFF = 0
    AUTOMATIC = 1
    POSITION = 2
    CALIBRATION = 3
    SYNC = 4

    @classmethod
    def from_wire(cls, value: object) -> Optional["Mode"]:
        """Return the mode for a wire value, or None when it is not a known mode."""
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def from_name(cls, name: str) -> "Mode":
        normalized = name.strip().upper().replace("-", "_")
        if normalized == "POSITION_HOLD":
            normalized = "POSITION"
        try:
            return cls[normalized]
        except KeyError:
            raise ValueError(f"Unknown mode: {name!r}") from None


class LogMode(IntEnum):
    """Diagnostic verbosity for command logging. Higher values include lower ones."""

    NONE = 0
    ERRORS = 1
    RESPONSES = 2
    VERBOSE = 3

    @classmethod
    def parse(cls, value: str, default: Optional["LogMode"] = None) -> "LogMode":
        try:
            return cls[value.strip().upper()]
        except KeyError:
            if default is None:
                raise ValueError(f"Unknown log mode: {value!r}") from None
            return default


class FileKind(str, Enum):
    """Kinds of control file accepted by the upload endpoint."""

    PATTERN_CSV = "pattern_csv"
    CSV = "csv"
    FUNSCRIPT = "funscript"

    @property
    def extension(self) -> str:
        return "funscript" if self is FileKind.FUNSCRIPT else "csv"

    @classmethod
    def from_filename(cls, file_name: str) -> "FileKind":
        if file_name.lower().endswith(".funscript"):
            return cls.FUNSCRIPT
        return cls.CSV


@dataclass(slots=True, frozen=True)
class SpatialReading:
    """One measurement expressed both as a percentage and in device units."""

    percent: float
    raw: float


@dataclass(slots=True, frozen=True)
class DeviceStatus:
    mode: Optional[Mode] = None
    current_position: float = 0.0
    speed: float = 0.0
    stroke: float = 0.0


@dataclass(slots=True, frozen=True)
class VersionInfo:
    current: str
    latest: str

    @property
    def update_available(self) -> bool:
        return bool(self.latest) and self.current != self.latest


@dataclass(slots=True, frozen=True)
class PlaybackState:
    playing: bool = False
    set_offset: int = 0


@dataclass(slots=True, frozen=True)
class PatternPoint:
    """Desired position (percent of stroke) at a time offset from the start of playback."""

    time_ms: int
    position: int

    def to_csv_line(self) -> str:
        return f"{self.time_ms},{self.position}"


@dataclass(slots=True, frozen=True)
class PublishedFile:
    """A control file hosted by the upload service."""

    url: str
    name: str
    size_bytes: Optional[int] = None
