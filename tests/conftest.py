import json
from collections import deque
from typing import Any, Mapping, Optional, Union

import pytest

from handy_client.core.events import ClientEvents
from handy_client.pipeline import CommandPipeline
from handy_client.session import Session

Payload = Union[Mapping[str, Any], str]


class FakeTransport:
    """Scripted transport keyed by endpoint name (the last URL path segment)."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, dict[str, str]]] = []
        self.uploads: list[tuple[str, str, bytes]] = []
        self.closed = False
        self._routes: dict[str, deque[str]] = {}
        self._upload_responses: deque[str] = deque()

    def respond(self, endpoint: str, *payloads: Payload) -> None:
        queue = self._routes.setdefault(endpoint, deque())
        queue.extend(_encode(payload) for payload in payloads)

    def respond_upload(self, *payloads: Payload) -> None:
        self._upload_responses.extend(_encode(payload) for payload in payloads)

    @property
    def endpoints(self) -> list[str]:
        return [url.rsplit("/", 1)[-1] for url, _ in self.requests]

    async def get(self, url: str, params: Optional[Mapping[str, str]] = None) -> str:
        self.requests.append((url, dict(params or {})))
        queue = self._routes.get(url.rsplit("/", 1)[-1])
        if not queue:
            return json.dumps({"success": False, "error": f"unscripted request {url}"})
        # The last scripted response repeats.
        return queue.popleft() if len(queue) > 1 else queue[0]

    async def post_file(self, url: str, file_name: str, content: bytes) -> str:
        self.uploads.append((url, file_name, content))
        if not self._upload_responses:
            return json.dumps({"success": True, "url": f"https://files.test/{file_name}"})
        return self._upload_responses.popleft()

    async def aclose(self) -> None:
        self.closed = True


def _encode(payload: Payload) -> str:
    return payload if isinstance(payload, str) else json.dumps(payload)


class EventRecorder:
    """Records every client notification, in order, as (kind, value) tuples."""

    def __init__(self, events: ClientEvents) -> None:
        self.log: list[tuple[str, Any]] = []
        events.command_started.connect(lambda name: self.log.append(("started", name)))
        events.command_ended.connect(lambda name: self.log.append(("ended", name)))
        events.mode_changed.connect(lambda mode: self.log.append(("mode", mode)))

    def of(self, kind: str) -> list[Any]:
        return [value for entry_kind, value in self.log if entry_kind == kind]


class FakeClock:
    """Returns scripted millisecond readings, then keeps returning the last one."""

    def __init__(self, *readings: int) -> None:
        self._readings = deque(readings or (0,))
        self.calls = 0

    def __call__(self) -> int:
        self.calls += 1
        if len(self._readings) > 1:
            return self._readings.popleft()
        return self._readings[0]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def session() -> Session:
    return Session(connection_key="test-key")


@pytest.fixture
def pipeline(session: Session, transport: FakeTransport) -> CommandPipeline:
    return CommandPipeline(session, transport, base_url="https://device.test/api/v1")


@pytest.fixture
def recorder(pipeline: CommandPipeline) -> EventRecorder:
    return EventRecorder(pipeline.events)
