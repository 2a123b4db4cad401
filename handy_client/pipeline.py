"""Command dispatch pipeline shared by every device operation."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional
from urllib.parse import quote

from . import constants
from .core.errors import (
    DeviceError,
    HandyError,
    MissingCredentialError,
    ProjectionError,
    TransportError,
)
from .core.events import ClientEvents
from .core.models import LogMode
from .core.protocols import Transport
from .core.results import CommandResult
from .modes import ModeStateMachine
from .response import UNKNOWN_ERROR, ParsedResponse, parse_response
from .session import Session

LOGGER = logging.getLogger(__name__)

RequestFn = Callable[[], Awaitable[str]]
Projection = Callable[[ParsedResponse], Any]
Completion = Callable[[CommandResult[Any]], Awaitable[None] | None]

MISSING_CREDENTIAL_MESSAGE = "No connection key provided"


class CommandPipeline:
    """Runs device requests through one uniform lifecycle.

    Every dispatch emits ``command_started`` first and ``command_ended`` last,
    checks the connection key before touching the network, validates the
    response, observes any reported mode and projects the payload. Failures
    are returned as :class:`CommandResult` values, never raised.
    """

    def __init__(
        self,
        session: Session,
        transport: Transport,
        *,
        events: Optional[ClientEvents] = None,
        base_url: str = constants.DEFAULT_API_BASE_URL,
    ) -> None:
        self.session = session
        self.transport = transport
        self.events = events or ClientEvents()
        self.modes = ModeStateMachine(session, self.events)
        self._base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def api_url(self, endpoint: str, *, with_key: bool = True) -> str:
        if not with_key:
            return f"{self._base_url}/{endpoint}"
        key = quote(self.session.connection_key.strip(), safe="")
        return f"{self._base_url}/{key}/{endpoint}"

    async def dispatch(
        self,
        name: str,
        request: RequestFn,
        on_success: Projection,
        *,
        completion: Optional[Completion] = None,
        require_key: bool = True,
    ) -> CommandResult[Any]:
        """Execute one command and return its result.

        ``completion``, when given, receives the same result exactly once
        before ``command_ended`` fires.
        """

        async with self.lifecycle(name):
            result = await self._execute(name, request, on_success, require_key)
            await self.deliver(name, result, completion)
        return result

    @contextlib.asynccontextmanager
    async def lifecycle(self, name: str) -> AsyncIterator[None]:
        """Bracket a command with ``command_started`` / ``command_ended``."""

        await self.events.command_started.emit(name)
        if self.session.log_mode >= LogMode.VERBOSE:
            LOGGER.info("Beginning command %s", name)
        try:
            yield
        finally:
            await self.events.command_ended.emit(name)

    def check_credentials(self, name: str) -> Optional[CommandResult[Any]]:
        """Return a failure result when no connection key is set, else None."""

        if self.session.has_credentials:
            return None
        return self.fail(MissingCredentialError(MISSING_CREDENTIAL_MESSAGE, command=name))

    async def fetch(
        self, name: str, request: RequestFn, *, strict: bool = True
    ) -> tuple[Optional[ParsedResponse], Optional[HandyError]]:
        """Run ``request`` and validate its body.

        With ``strict`` a response lacking the success flag is an error; when
        relaxed only an explicit ``success: false`` is.
        """

        try:
            raw = await request()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            return None, TransportError(f"Request failed: {exc}", command=name)

        return self.evaluate(name, raw, strict=strict)

    def evaluate(
        self, name: str, raw: str, *, strict: bool = True
    ) -> tuple[ParsedResponse, Optional[HandyError]]:
        response = parse_response(raw)
        if self.session.log_mode >= LogMode.RESPONSES:
            LOGGER.info("%s response: %s", name, response.raw.strip())

        if strict:
            message = response.failure_message()
        elif response.has_success_flag and not response.is_success():
            message = response.error_message() or UNKNOWN_ERROR
        else:
            message = None

        if message is None:
            return response, None
        if response.is_transport_failure:
            return response, TransportError(message, command=name)
        return response, DeviceError(message, command=name)

    def fail(self, error: HandyError) -> CommandResult[Any]:
        if self.session.log_mode >= LogMode.ERRORS:
            LOGGER.error("%s failed with error: %s", error.command, error.message)
        return CommandResult.failure(error)

    async def deliver(
        self,
        name: str,
        result: CommandResult[Any],
        completion: Optional[Completion],
    ) -> None:
        if completion is None:
            return
        try:
            outcome = completion(result)
            if asyncio.iscoroutine(outcome):
                await outcome
        except asyncio.CancelledError:
            raise
        except Exception:
            LOGGER.exception("Completion handler for %s failed", name)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _execute(
        self,
        name: str,
        request: RequestFn,
        on_success: Projection,
        require_key: bool,
    ) -> CommandResult[Any]:
        if require_key:
            missing = self.check_credentials(name)
            if missing is not None:
                return missing

        response, error = await self.fetch(name, request)
        if error is not None:
            return self.fail(error)

        await self.modes.observe_response(response)

        try:
            value = on_success(response)
            if asyncio.iscoroutine(value):
                value = await value
        except asyncio.CancelledError:
            raise
        except HandyError as exc:
            return self.fail(ProjectionError(exc.message, command=name))
        except Exception as exc:
            return self.fail(ProjectionError(str(exc) or type(exc).__name__, command=name))

        return CommandResult.success(value)
