"""Tests for pattern and control file publishing."""

import pytest

from handy_client.adapters import failure_body
from handy_client.core.errors import DeviceError, InvalidInputError, TransportError
from handy_client.core.models import FileKind, PatternPoint, PublishedFile
from handy_client.publisher import PatternPublisher, serialize_pattern

from conftest import FakeClock

UPLOAD_URL = "https://files.test/api/sync/upload"


@pytest.fixture
def publisher(pipeline):
    return PatternPublisher(pipeline, upload_url=UPLOAD_URL, clock=FakeClock(1617181920212))


def test_serialize_pattern_writes_header_and_pairs_in_order():
    body = serialize_pattern([PatternPoint(500, 100), (0, 0), (250, 50)])

    assert body == '#{"type":"handy"}\n500,100\n0,0\n250,50'


@pytest.mark.parametrize(
    "point",
    [(-1, 50), (0, 101), (0, -1), (1.5, 10), ("0", 10), (0,), (True, 10)],
)
def test_serialize_pattern_rejects_invalid_points(point):
    with pytest.raises(InvalidInputError):
        serialize_pattern([point])


@pytest.mark.asyncio
async def test_empty_pattern_fails_without_upload(publisher, transport, recorder):
    result = await publisher.publish_pattern([])

    assert isinstance(result.error, InvalidInputError)
    assert result.message == "No pattern data provided"
    assert transport.uploads == []
    assert recorder.log == [("started", "Pattern to URL"), ("ended", "Pattern to URL")]


@pytest.mark.asyncio
async def test_publish_pattern_uploads_csv_with_generated_name(publisher, transport, recorder):
    transport.respond_upload({"success": True, "url": "https://files.test/abc.csv"})

    result = await publisher.publish_pattern([(0, 0), (500, 100)])

    assert result.value == PublishedFile(
        url="https://files.test/abc.csv",
        name="HandyClientGenerated_1617181920212.csv",
        size_bytes=len(b'#{"type":"handy"}\n0,0\n500,100'),
    )
    assert transport.uploads == [
        (
            UPLOAD_URL,
            "HandyClientGenerated_1617181920212.csv",
            b'#{"type":"handy"}\n0,0\n500,100',
        )
    ]
    assert recorder.log == [("started", "Pattern to URL"), ("ended", "Pattern to URL")]


@pytest.mark.asyncio
async def test_publish_does_not_need_connection_key(publisher, transport):
    publisher._pipeline.session.connection_key = ""

    result = await publisher.publish_pattern([(0, 0)], "mine.csv")

    assert result.ok
    assert transport.uploads[0][1] == "mine.csv"


@pytest.mark.asyncio
async def test_invalid_point_fails_before_upload(publisher, transport):
    result = await publisher.publish_pattern([(0, 0), (100, 150)])

    assert isinstance(result.error, InvalidInputError)
    assert result.error.command == "Pattern to URL"
    assert transport.uploads == []


@pytest.mark.asyncio
async def test_response_without_url_is_soft_success(publisher, transport):
    transport.respond_upload({"message": "stored"})

    result = await publisher.publish_pattern([(0, 0)])

    assert result.ok
    assert result.value.url == ""


@pytest.mark.asyncio
async def test_explicit_upload_failure_is_reported(publisher, transport):
    transport.respond_upload({"success": False, "error": "File too large"})

    result = await publisher.publish_file("0,0\n100,100", FileKind.CSV)

    assert isinstance(result.error, DeviceError)
    assert result.message == "File too large"


@pytest.mark.asyncio
async def test_upload_transport_failure_is_reported(publisher, transport, recorder):
    transport.respond_upload(failure_body("Upload timed out after 120.0s"))

    result = await publisher.publish_file('{"actions": []}', FileKind.FUNSCRIPT)

    assert isinstance(result.error, TransportError)
    assert recorder.log == [("started", "Funscript to URL"), ("ended", "Funscript to URL")]


@pytest.mark.asyncio
async def test_publish_funscript_as_is_with_generated_extension(publisher, transport):
    script = '{"actions": [{"at": 0, "pos": 10}]}'

    result = await publisher.publish_file(script, FileKind.FUNSCRIPT)

    assert result.value.name == "HandyClientGenerated_1617181920212.funscript"
    assert transport.uploads[0][2] == script.encode("utf-8")


@pytest.mark.asyncio
async def test_publish_file_keeps_given_name(publisher, transport):
    result = await publisher.publish_file(b"0,0\n", FileKind.CSV, "scene.csv")

    assert result.value.name == "scene.csv"
    assert result.value.size_bytes == 4


@pytest.mark.asyncio
async def test_publish_file_rejects_empty_content(publisher, transport, recorder):
    result = await publisher.publish_file("", FileKind.CSV)

    assert isinstance(result.error, InvalidInputError)
    assert transport.uploads == []
    assert recorder.log == [("started", "CSV to URL"), ("ended", "CSV to URL")]


def test_file_kind_from_filename():
    assert FileKind.from_filename("Scene.FUNSCRIPT") is FileKind.FUNSCRIPT
    assert FileKind.from_filename("scene.csv") is FileKind.CSV


@pytest.mark.asyncio
async def test_empty_point_generator_fails_without_upload(publisher, transport):
    result = await publisher.publish_pattern(point for point in [])

    assert isinstance(result.error, InvalidInputError)
    assert result.message == "No pattern data provided"
    assert transport.uploads == []


@pytest.mark.asyncio
async def test_publish_pattern_accepts_generator(publisher, transport):
    transport.respond_upload({"success": True, "url": "https://files.test/gen.csv"})

    result = await publisher.publish_pattern((t * 100, t * 10) for t in range(3))

    assert result.ok
    assert len(transport.uploads) == 1
