"""Tracking and enforcement of the device operating mode."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .core.events import ClientEvents
from .core.models import Mode
from .core.results import CommandResult
from .response import ParsedResponse
from .session import Session

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

ModeSetter = Callable[[Mode], Awaitable[CommandResult[Mode]]]


class ModeStateMachine:
    """Caches the device mode and raises ``mode_changed`` on every real transition."""

    def __init__(self, session: Session, events: ClientEvents) -> None:
        self._session = session
        self._events = events

    @property
    def current(self) -> Mode:
        return self._session.mode

    @staticmethod
    def toggled(current: Mode, target: Mode) -> Mode:
        """Mode reached by toggling ``target``: Off when already in it, otherwise ``target``."""
        return Mode.OFF if current == target else target

    async def observe(self, mode: Mode) -> bool:
        """Record ``mode`` as current. Returns True when it differed from the cached mode."""

        previous = self._session.mode
        if mode == previous:
            return False

        self._session.mode = mode
        LOGGER.debug("Mode changed from %s to %s", previous.name, mode.name)
        await self._events.notify_mode_changed(mode)
        return True

    async def observe_response(self, response: ParsedResponse) -> Optional[Mode]:
        """Apply the ``mode`` field of a successful response, if it carries one."""

        if "mode" not in response:
            return None

        mode = Mode.from_wire(response.get_int("mode", -1))
        if mode is None:
            LOGGER.warning("Ignoring unknown mode in response: %r", response.as_dict()["mode"])
            return None

        await self.observe(mode)
        return mode

    async def enforce(
        self,
        required: Mode,
        action: Callable[[], Awaitable[CommandResult[T]]],
        set_mode: ModeSetter,
    ) -> CommandResult[T]:
        """Run ``action`` in ``required`` mode, switching the device first if needed.

        When the switch fails the action never runs and the switch failure is
        returned in its place.
        """

        if self._session.mode == required:
            return await action()

        LOGGER.debug(
            "Switching mode from %s to %s before command",
            self._session.mode.name,
            required.name,
        )
        switched = await set_mode(required)
        if not switched.ok:
            return CommandResult.failure(switched.error)
        return await action()
