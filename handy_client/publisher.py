"""Conversion of patterns and control files into hosted URLs."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from . import constants
from .core.errors import InvalidInputError
from .core.models import FileKind, PatternPoint, PublishedFile
from .core.results import CommandResult
from .core.utils import now_ms
from .pipeline import CommandPipeline, Completion

LOGGER = logging.getLogger(__name__)

PointLike = Union[PatternPoint, Sequence[int]]

_COMMAND_NAMES = {
    FileKind.PATTERN_CSV: "Pattern to URL",
    FileKind.CSV: "CSV to URL",
    FileKind.FUNSCRIPT: "Funscript to URL",
}


def coerce_point(point: PointLike) -> PatternPoint:
    """Validate one point, accepting ``PatternPoint`` or a ``(time_ms, position)`` pair."""

    if isinstance(point, PatternPoint):
        time_ms, position = point.time_ms, point.position
    else:
        try:
            time_ms, position = point
        except (TypeError, ValueError):
            raise InvalidInputError(f"Not a (time, position) pair: {point!r}") from None

    for value in (time_ms, position):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInputError(f"Pattern values must be integers: {point!r}")
    if time_ms < 0:
        raise InvalidInputError(f"Pattern time must not be negative: {time_ms}")
    if not 0 <= position <= 100:
        raise InvalidInputError(f"Pattern position must be within 0-100: {position}")
    return PatternPoint(time_ms, position)


def serialize_pattern(points: Iterable[PointLike]) -> str:
    """Render points as the device CSV format, keeping the caller's order.

    >>> serialize_pattern([(0, 0), (500, 100)])
    '#{"type":"handy"}\\n0,0\\n500,100'
    """

    lines = [constants.PATTERN_HEADER]
    lines.extend(coerce_point(point).to_csv_line() for point in points)
    return "\n".join(lines)


class PatternPublisher:
    """Uploads control files to the hosting endpoint.

    Uploads reuse the pipeline lifecycle and logging but do not need a
    connection key. A response without a ``url`` is a soft success with an
    empty URL; only an explicit ``success: false`` is a failure.
    """

    def __init__(
        self,
        pipeline: CommandPipeline,
        *,
        upload_url: str = constants.DEFAULT_UPLOAD_URL,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._pipeline = pipeline
        self._upload_url = upload_url
        self._clock = clock

    def generate_file_name(self, kind: FileKind) -> str:
        return f"{constants.GENERATED_FILE_PREFIX}_{self._clock()}.{kind.extension}"

    async def publish_pattern(
        self,
        points: Iterable[PointLike],
        file_name: Optional[str] = None,
        *,
        completion: Optional[Completion] = None,
    ) -> CommandResult[PublishedFile]:
        name = _COMMAND_NAMES[FileKind.PATTERN_CSV]
        async with self._pipeline.lifecycle(name):
            result = await self._publish_pattern(name, points, file_name)
            await self._pipeline.deliver(name, result, completion)
        return result

    async def publish_file(
        self,
        content: Union[str, bytes],
        kind: FileKind = FileKind.CSV,
        file_name: Optional[str] = None,
        *,
        completion: Optional[Completion] = None,
    ) -> CommandResult[PublishedFile]:
        """Upload a pre-authored CSV or funscript as-is."""

        name = _COMMAND_NAMES[kind]
        async with self._pipeline.lifecycle(name):
            if not content:
                result = self._pipeline.fail(
                    InvalidInputError(f"No {kind.extension} content provided", command=name)
                )
            else:
                data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
                result = await self._upload(name, data, file_name or self.generate_file_name(kind))
            await self._pipeline.deliver(name, result, completion)
        return result

    async def _publish_pattern(
        self, name: str, points: Iterable[PointLike], file_name: Optional[str]
    ) -> CommandResult[Any]:
        points = list(points)
        if not points:
            return self._pipeline.fail(InvalidInputError("No pattern data provided", command=name))

        try:
            body = serialize_pattern(points)
        except InvalidInputError as exc:
            exc.command = name
            return self._pipeline.fail(exc)

        data = body.encode("ascii")
        return await self._upload(
            name, data, file_name or self.generate_file_name(FileKind.PATTERN_CSV)
        )

    async def _upload(self, name: str, data: bytes, file_name: str) -> CommandResult[Any]:
        transport = self._pipeline.transport
        response, error = await self._pipeline.fetch(
            name,
            lambda: transport.post_file(self._upload_url, file_name, data),
            strict=False,
        )
        if error is not None:
            return self._pipeline.fail(error)

        url = response.get_str("url")
        if not url:
            LOGGER.warning("Upload of %s returned no URL", file_name)
        return CommandResult.success(PublishedFile(url=url, name=file_name, size_bytes=len(data)))
