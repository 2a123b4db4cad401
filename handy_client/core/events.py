"""Broadcast notifications exposed to collaborators (UI, CLI)."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable

from .models import Mode

LOGGER = logging.getLogger(__name__)

Subscriber = Callable[..., Awaitable[None] | None]


class Signal:
    """Ordered list of subscribers notified by :meth:`emit`."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: list[Subscriber] = []

    def connect(self, subscriber: Subscriber) -> Subscriber:
        if subscriber in self._subscribers:
            raise ValueError(f"Subscriber already connected to {self.name}")
        self._subscribers.append(subscriber)
        return subscriber

    def disconnect(self, subscriber: Subscriber) -> None:
        with contextlib.suppress(ValueError):
            self._subscribers.remove(subscriber)

    def __len__(self) -> int:
        return len(self._subscribers)

    async def emit(self, *args: Any) -> None:
        # Subscriber failures are logged so they cannot change the command outcome.
        for subscriber in list(self._subscribers):
            try:
                result = subscriber(*args)
                if asyncio.iscoroutine(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                LOGGER.exception("Subscriber for %s failed", self.name)


class ClientEvents:
    """Notifications raised by one client instance.

    ``command_started(name)`` and ``command_ended(name)`` bracket every
    command; ``mode_changed(mode)`` fires only when the cached mode changes.
    """

    def __init__(self) -> None:
        self.command_started = Signal("command_started")
        self.command_ended = Signal("command_ended")
        self.mode_changed = Signal("mode_changed")

    async def notify_mode_changed(self, mode: Mode) -> None:
        await self.mode_changed.emit(mode)
