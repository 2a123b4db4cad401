"""Mutable per-client session state."""

from __future__ import annotations

from dataclasses import dataclass

from .core.models import LogMode, Mode


@dataclass(slots=True)
class Session:
    """State owned by one client instance.

    ``mode`` is the last mode observed or set by this client and may be stale
    relative to the physical device. ``clock_offset_ms`` is the estimated
    server clock minus the local clock.
    """

    connection_key: str = ""
    mode: Mode = Mode.OFF
    clock_offset_ms: int = 0
    log_mode: LogMode = LogMode.ERRORS

    @property
    def has_credentials(self) -> bool:
        return bool(self.connection_key and self.connection_key.strip())

    def reset(self) -> None:
        """Forget cached device state; the connection key and log mode are kept."""
        self.mode = Mode.OFF
        self.clock_offset_ms = 0
