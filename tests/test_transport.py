"""Tests for the aiohttp transport."""

import asyncio
import json

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web

from handy_client.adapters import HandyTransport
from handy_client.response import parse_response


@pytest_asyncio.fixture
async def api_server(unused_tcp_port_factory):
    received: list[dict] = []

    async def echo_handler(request: web.Request):
        received.append({"path": request.path, "query": dict(request.query)})
        return web.json_response({"success": True, "query": dict(request.query)})

    async def error_handler(request: web.Request):
        return web.Response(status=503, text="Service Unavailable")

    async def slow_handler(request: web.Request):
        await asyncio.sleep(0.5)
        return web.json_response({"success": True})

    async def upload_handler(request: web.Request):
        form = await request.post()
        upload = form["syncFile"]
        received.append(
            {
                "path": request.path,
                "filename": upload.filename,
                "content": upload.file.read(),
            }
        )
        return web.json_response({"success": True, "url": f"https://files.test/{upload.filename}"})

    app = web.Application()
    app.router.add_get("/api/v1/{key}/echo", echo_handler)
    app.router.add_get("/api/v1/{key}/broken", error_handler)
    app.router.add_get("/api/v1/{key}/slow", slow_handler)
    app.router.add_post("/api/sync/upload", upload_handler)

    runner = web.AppRunner(app)
    await runner.setup()

    port = unused_tcp_port_factory()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()

    class _Server:
        def __init__(self, server_port: int):
            self._port = server_port
            self.received = received

        def make_url(self, path: str = "/") -> str:
            if not path.startswith("/"):
                path = "/" + path
            return f"http://127.0.0.1:{self._port}{path}"

    try:
        yield _Server(port)
    finally:
        await runner.cleanup()


@pytest.mark.asyncio
async def test_get_returns_body_and_sends_params(api_server):
    transport = HandyTransport()

    body = await transport.get(
        api_server.make_url("/api/v1/key/echo"), {"speed": "40", "type": "%"}
    )
    await transport.aclose()

    assert json.loads(body) == {"success": True, "query": {"speed": "40", "type": "%"}}


@pytest.mark.asyncio
async def test_http_error_becomes_failure_body(api_server):
    transport = HandyTransport()

    body = await transport.get(api_server.make_url("/api/v1/key/broken"))
    await transport.aclose()

    response = parse_response(body)
    assert response.is_transport_failure
    assert response.failure_message() == "HTTP 503: Service Unavailable"


@pytest.mark.asyncio
async def test_timeout_becomes_failure_body(api_server):
    transport = HandyTransport(request_timeout=0.05)

    body = await transport.get(api_server.make_url("/api/v1/key/slow"))
    await transport.aclose()

    assert "timed out" in parse_response(body).failure_message()


@pytest.mark.asyncio
async def test_connection_failure_becomes_failure_body(unused_tcp_port_factory):
    transport = HandyTransport()
    port = unused_tcp_port_factory()

    body = await transport.get(f"http://127.0.0.1:{port}/api/v1/key/echo")
    await transport.aclose()

    response = parse_response(body)
    assert response.is_transport_failure
    assert response.failure_message().startswith("Request failed")


@pytest.mark.asyncio
async def test_post_file_sends_multipart_sync_file(api_server):
    transport = HandyTransport()

    body = await transport.post_file(
        api_server.make_url("/api/sync/upload"), "pattern.csv", b"#header\n0,0"
    )
    await transport.aclose()

    assert json.loads(body)["url"] == "https://files.test/pattern.csv"
    assert api_server.received == [
        {"path": "/api/sync/upload", "filename": "pattern.csv", "content": b"#header\n0,0"}
    ]


@pytest.mark.asyncio
async def test_aclose_leaves_external_session_open(api_server):
    async with aiohttp.ClientSession() as session:
        transport = HandyTransport(session=session)
        await transport.get(api_server.make_url("/api/v1/key/echo"))
        await transport.aclose()

        assert not session.closed
