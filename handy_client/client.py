"""High-level client exposing every device operation."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, Mapping, Optional, Union

from . import constants
from .adapters.http import HandyTransport
from .clock_sync import ClockSyncEstimator
from .config import HandyConfig
from .core.events import ClientEvents
from .core.models import (
    DeviceStatus,
    FileKind,
    LogMode,
    Mode,
    PlaybackState,
    PublishedFile,
    SpatialReading,
    VersionInfo,
)
from .core.protocols import Transport
from .core.results import CommandResult
from .core.utils import clamp, now_ms
from .pipeline import CommandPipeline, RequestFn
from .publisher import PatternPublisher, PointLike
from .response import ParsedResponse
from .session import Session

LOGGER = logging.getLogger(__name__)


def _position_status(response: ParsedResponse) -> DeviceStatus:
    return DeviceStatus(current_position=response.get_float("currentPosition"))


class HandyClient:
    """Client for one device, identified by its connection key.

    Each instance owns its own :class:`Session`, so several devices can be
    driven side by side. Commands are not queued: callers that need strict
    ordering should await one command before issuing the next.

    Usage::

        async with HandyClient(connection_key="abc123") as client:
            client.events.mode_changed.connect(print)
            result = await client.set_speed_percent(40)
            if not result.ok:
                print(result.message)
    """

    def __init__(
        self,
        config: Optional[HandyConfig] = None,
        *,
        connection_key: Optional[str] = None,
        transport: Optional[Transport] = None,
        events: Optional[ClientEvents] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.config = config or HandyConfig()
        self.session = Session(
            connection_key=(
                connection_key
                if connection_key is not None
                else self.config.device.connection_key
            ),
            log_mode=self.config.logging.log_mode,
        )
        self._owns_transport = transport is None
        self._transport = transport or HandyTransport(
            request_timeout=self.config.api.request_timeout_seconds,
            upload_timeout=self.config.api.upload_timeout_seconds,
        )
        self._clock = clock

        self.pipeline = CommandPipeline(
            self.session,
            self._transport,
            events=events,
            base_url=self.config.api.base_url,
        )
        self.clock_sync = ClockSyncEstimator(self.pipeline, clock=clock)
        self.publisher = PatternPublisher(
            self.pipeline, upload_url=self.config.api.upload_url, clock=clock
        )

    async def __aenter__(self) -> "HandyClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_transport:
            await self._transport.aclose()

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------
    @property
    def events(self) -> ClientEvents:
        return self.pipeline.events

    @property
    def connection_key(self) -> str:
        return self.session.connection_key

    @connection_key.setter
    def connection_key(self, value: str) -> None:
        # A different key is a different device; its mode and offset are unknown.
        value = value or ""
        if value != self.session.connection_key:
            self.session.reset()
        self.session.connection_key = value

    @property
    def mode(self) -> Mode:
        """Last known mode. Call :meth:`get_status` to refresh it from the device."""
        return self.session.mode

    @property
    def log_mode(self) -> LogMode:
        return self.session.log_mode

    @log_mode.setter
    def log_mode(self, value: LogMode) -> None:
        self.session.log_mode = value

    @property
    def clock_offset_ms(self) -> int:
        return self.session.clock_offset_ms

    def estimated_server_time(self) -> int:
        return self._clock() + self.session.clock_offset_ms

    # ------------------------------------------------------------------
    # Machine commands
    # ------------------------------------------------------------------
    async def set_mode(self, mode: Mode) -> CommandResult[Mode]:
        return await self.pipeline.dispatch(
            "Set Mode",
            self._get("setMode", {"mode": str(int(mode))}),
            lambda response: Mode(response.require_int("mode")),
        )

    async def toggle_mode(self, mode: Mode) -> CommandResult[Mode]:
        """Toggle between Off and ``mode``."""

        previous = self.session.mode

        async def project(response: ParsedResponse) -> Mode:
            if "mode" in response:
                return Mode(response.require_int("mode"))
            # Computed against the mode cached before this command was sent.
            new_mode = self.pipeline.modes.toggled(previous, mode)
            await self.pipeline.modes.observe(new_mode)
            return new_mode

        return await self.pipeline.dispatch(
            "Toggle Mode",
            self._get("toggleMode", {"mode": str(int(mode))}),
            project,
        )

    async def set_speed_percent(self, percent: int) -> CommandResult[DeviceStatus]:
        """Set speed as a percentage of the maximum. Switches to Automatic first if needed."""

        percent = int(clamp(percent, 0, 100))
        return await self._in_mode(
            Mode.AUTOMATIC,
            lambda: self.pipeline.dispatch(
                "Set Speed (Percent)",
                self._get("setSpeed", {"speed": str(percent), "type": "%"}),
                _position_status,
            ),
        )

    async def set_speed(self, speed_mm_per_s: float) -> CommandResult[DeviceStatus]:
        """Set speed in mm/s (400 maximum). Switches to Automatic first if needed."""

        speed = clamp(speed_mm_per_s, 0.0, constants.MAX_SPEED_MM_PER_S)
        return await self._in_mode(
            Mode.AUTOMATIC,
            lambda: self.pipeline.dispatch(
                "Set Speed (mm)",
                self._get("setSpeed", {"speed": f"{speed:.0f}", "type": "mm/s"}),
                _position_status,
            ),
        )

    async def step_speed(self, up: bool = True) -> CommandResult[SpatialReading]:
        """Add or subtract 10% of speed. Switches to Automatic first if needed."""

        factor = self.config.api.speed_correction_factor

        def project(response: ParsedResponse) -> SpatialReading:
            return SpatialReading(
                percent=response.get_float("speedPercent"),
                raw=response.get_float("speed") * factor,
            )

        return await self._in_mode(
            Mode.AUTOMATIC,
            lambda: self.pipeline.dispatch(
                "Step Speed Up" if up else "Step Speed Down",
                self._get("stepSpeed", {"step": _flag(up)}),
                project,
            ),
        )

    async def set_stroke_percent(self, percent: int) -> CommandResult[DeviceStatus]:
        percent = int(clamp(percent, 0, 100))
        return await self.pipeline.dispatch(
            "Set Stroke (Percent)",
            self._get("setStroke", {"stroke": str(percent), "type": "%"}),
            _position_status,
        )

    async def set_stroke(self, stroke_mm: float) -> CommandResult[DeviceStatus]:
        stroke = clamp(stroke_mm, 0.0, constants.MAX_STROKE_MM)
        return await self.pipeline.dispatch(
            "Set Stroke (mm)",
            self._get("setStroke", {"stroke": f"{stroke:.0f}", "type": "mm"}),
            _position_status,
        )

    async def step_stroke(self, up: bool = True) -> CommandResult[SpatialReading]:
        def project(response: ParsedResponse) -> SpatialReading:
            stroke = response.get_float("stroke")
            return SpatialReading(percent=stroke, raw=stroke * constants.STROKE_MM_PER_PERCENT)

        return await self.pipeline.dispatch(
            "Step Stroke Up" if up else "Step Stroke Down",
            self._get("stepStroke", {"step": _flag(up)}),
            project,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    async def get_version(self) -> CommandResult[VersionInfo]:
        return await self.pipeline.dispatch(
            "Get Version",
            self._get("getVersion"),
            lambda response: VersionInfo(
                current=response.get_str("version"),
                latest=response.get_str("latest"),
            ),
        )

    async def get_settings(self) -> CommandResult[DeviceStatus]:
        return await self.pipeline.dispatch(
            "Get Settings",
            self._get("getSettings"),
            lambda response: DeviceStatus(
                mode=Mode(response.require_int("mode")),
                current_position=response.get_float("position"),
                speed=response.get_float("speed"),
                stroke=response.get_float("stroke"),
            ),
        )

    async def get_status(self) -> CommandResult[Mode]:
        """Query the device mode. Also the simplest connectivity check."""

        return await self.pipeline.dispatch(
            "Get Status",
            self._get("getStatus"),
            lambda response: Mode(response.require_int("mode")),
        )

    # ------------------------------------------------------------------
    # Sync playback
    # ------------------------------------------------------------------
    async def synchronize_clock(self, trips: Optional[int] = None) -> CommandResult[int]:
        """Estimate the server clock offset used to schedule sync playback."""

        return await self.clock_sync.synchronize(
            self.config.sync.trips if trips is None else trips
        )

    async def sync_prepare(
        self,
        source: Union[PublishedFile, str],
        file_name: str = "",
        size_bytes: int = -1,
    ) -> CommandResult[None]:
        """Load a hosted control file onto the device; the device enters Sync mode.

        When ``file_name`` and ``size_bytes`` match the file already loaded,
        the device skips downloading it again.
        """

        if isinstance(source, PublishedFile):
            url = source.url
            file_name = file_name or source.name
            if size_bytes <= 0 and source.size_bytes is not None:
                size_bytes = source.size_bytes
        else:
            url = source

        params = {"url": url}
        if file_name:
            params["name"] = file_name
        if size_bytes > 0:
            params["size"] = str(size_bytes)
        params["timeout"] = str(self.config.sync.prepare_timeout_ms)

        async def project(response: ParsedResponse) -> None:
            # A mode reported by the device has already been applied.
            if Mode.from_wire(response.get_int("mode", -1)) is None:
                await self.pipeline.modes.observe(Mode.SYNC)

        return await self.pipeline.dispatch(
            "Sync Prepare", self._get("syncPrepare", params), project
        )

    async def sync_play(self, time_ms: int = 0) -> CommandResult[PlaybackState]:
        """Start playback of the loaded file. Switches to Sync first if needed."""

        def request() -> Awaitable[str]:
            params = {"play": "true"}
            if time_ms > 0:
                params["time"] = str(time_ms)
            self._add_server_time(params)
            return self._transport.get(self.pipeline.api_url("syncPlay"), params)

        return await self._in_mode(
            Mode.SYNC,
            lambda: self.pipeline.dispatch(
                "Sync Play",
                request,
                lambda response: PlaybackState(
                    playing=response.get_bool("playing"),
                    set_offset=response.get_int("setOffset"),
                ),
            ),
        )

    async def sync_pause(self) -> CommandResult[PlaybackState]:
        def request() -> Awaitable[str]:
            params = {"play": "false"}
            self._add_server_time(params)
            return self._transport.get(self.pipeline.api_url("syncPlay"), params)

        return await self.pipeline.dispatch(
            "Sync Pause",
            request,
            lambda response: PlaybackState(playing=response.get_bool("playing")),
        )

    async def sync_adjust_offset(self, offset_ms: int) -> CommandResult[PlaybackState]:
        """Shift sync playback relative to local media; negative values are allowed."""

        return await self.pipeline.dispatch(
            "Sync Offset",
            self._get("syncOffset", {"offset": str(int(offset_ms))}),
            lambda response: PlaybackState(set_offset=response.get_int("offset")),
        )

    # ------------------------------------------------------------------
    # Control files
    # ------------------------------------------------------------------
    async def publish_pattern(
        self, points: Iterable[PointLike], file_name: Optional[str] = None
    ) -> CommandResult[PublishedFile]:
        return await self.publisher.publish_pattern(points, file_name)

    async def publish_file(
        self,
        content: Union[str, bytes],
        kind: FileKind = FileKind.CSV,
        file_name: Optional[str] = None,
    ) -> CommandResult[PublishedFile]:
        return await self.publisher.publish_file(content, kind, file_name)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _get(self, endpoint: str, params: Optional[Mapping[str, str]] = None) -> RequestFn:
        # The URL is built when the request runs so it uses the current key.
        return lambda: self._transport.get(self.pipeline.api_url(endpoint), params)

    def _add_server_time(self, params: dict[str, str]) -> None:
        if self.session.clock_offset_ms != 0:
            params["serverTime"] = str(self.estimated_server_time())

    async def _in_mode(
        self, mode: Mode, action: Callable[[], Awaitable[CommandResult]]
    ) -> CommandResult:
        return await self.pipeline.modes.enforce(mode, action, self.set_mode)


def _flag(value: bool) -> str:
    return "true" if value else "false"
