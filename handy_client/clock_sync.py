"""Estimation of the offset between the server clock and the local clock."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from . import constants
from .core.errors import InvalidInputError, ProjectionError
from .core.models import LogMode
from .core.results import CommandResult
from .core.utils import now_ms, truncating_div, truncating_mean
from .pipeline import CommandPipeline, Completion

LOGGER = logging.getLogger(__name__)

COMMAND_NAME = "Get Server Time"


def probe_offset(departure_ms: int, arrival_ms: int, server_time_ms: int) -> int:
    """Offset implied by one round trip, assuming the reply took half of it."""

    round_trip = arrival_ms - departure_ms
    estimated_server_time = server_time_ms + truncating_div(round_trip, 2)
    return estimated_server_time - arrival_ms


class ClockSyncEstimator:
    """Probes ``getServerTime`` repeatedly and stores the mean offset on the session.

    Each probe counts against the API's hourly request allowance, so the
    trip count should stay modest (30 is the recommended value). A failing
    probe aborts the whole run and leaves the previous offset untouched.
    """

    def __init__(
        self,
        pipeline: CommandPipeline,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._pipeline = pipeline
        self._clock = clock

    async def synchronize(
        self,
        trips: int = constants.DEFAULT_SYNC_TRIPS,
        *,
        completion: Optional[Completion] = None,
    ) -> CommandResult[int]:
        async with self._pipeline.lifecycle(COMMAND_NAME):
            result = await self._run(trips)
            await self._pipeline.deliver(COMMAND_NAME, result, completion)
        return result

    async def _run(self, trips: int) -> CommandResult[Any]:
        pipeline = self._pipeline

        missing = pipeline.check_credentials(COMMAND_NAME)
        if missing is not None:
            return missing

        if trips < 1:
            return pipeline.fail(
                InvalidInputError(
                    f"Trip count must be at least 1, got {trips}", command=COMMAND_NAME
                )
            )

        url = pipeline.api_url("getServerTime")
        offsets: list[int] = []
        for trip in range(trips):
            departure = self._clock()
            response, error = await pipeline.fetch(
                COMMAND_NAME, lambda: pipeline.transport.get(url)
            )
            arrival = self._clock()

            if error is not None:
                LOGGER.debug("Clock sync aborted on trip %d of %d", trip + 1, trips)
                return pipeline.fail(error)

            try:
                server_time = response.require_int("serverTime")
            except ProjectionError as exc:
                exc.command = COMMAND_NAME
                return pipeline.fail(exc)

            offsets.append(probe_offset(departure, arrival, server_time))

        offset = truncating_mean(offsets)
        pipeline.session.clock_offset_ms = offset
        if pipeline.session.log_mode >= LogMode.VERBOSE:
            LOGGER.info("Calculated server offset as %d milliseconds", offset)
        return CommandResult.success(offset)
