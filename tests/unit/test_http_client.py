import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from adapters.http_client import HttpClient
from exceptions import ConnectionException, HTTPStatusException


def _backend_app():
    state = {"flaky_calls": 0, "posts": 0, "auth": None}

    async def departments(request):
        state["auth"] = request.headers.get("Authorization")
        return web.json_response({"success": True, "data": [{"id": "d1"}]})

    async def conflict(request):
        return web.json_response({"success": False, "message": "Name already taken"}, status=409)

    async def flaky(request):
        state["flaky_calls"] += 1
        if state["flaky_calls"] == 1:
            return web.json_response({"error": "boom"}, status=503)
        return web.json_response([{"id": 1}])

    async def failing_post(request):
        state["posts"] += 1
        return web.json_response({"error": "boom"}, status=500)

    async def no_content(request):
        return web.Response(status=204)

    app = web.Application()
    app["state"] = state
    app.router.add_get("/api/departments", departments)
    app.router.add_put("/api/departments/d1", conflict)
    app.router.add_get("/api/flaky", flaky)
    app.router.add_post("/api/failing", failing_post)
    app.router.add_delete("/api/departments/d1", no_content)
    return app


@pytest_asyncio.fixture
async def backend():
    server = TestServer(_backend_app())
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def client(backend, console_config):
    console_config.backend.api_base_url = str(backend.make_url("/api"))
    http = HttpClient(console_config)
    await http.start()
    yield http
    await http.stop()


@pytest.mark.asyncio
async def test_get_sends_bearer_token(client, backend):
    body = await client.get("/departments", token="abc.def.ghi")
    assert body == {"success": True, "data": [{"id": "d1"}]}
    assert backend.app["state"]["auth"] == "Bearer abc.def.ghi"


@pytest.mark.asyncio
async def test_error_status_carries_server_message(client):
    with pytest.raises(HTTPStatusException) as exc_info:
        await client.put("/departments/d1", {"name": "Ops"})
    assert exc_info.value.status == 409
    assert exc_info.value.server_message == "Name already taken"


@pytest.mark.asyncio
async def test_get_is_retried_on_server_error(client, backend):
    body = await client.get("/flaky")
    assert body == [{"id": 1}]
    assert backend.app["state"]["flaky_calls"] == 2


@pytest.mark.asyncio
async def test_post_is_not_retried(client, backend):
    with pytest.raises(HTTPStatusException):
        await client.post("/failing", {})
    assert backend.app["state"]["posts"] == 1


@pytest.mark.asyncio
async def test_empty_body_decodes_to_none(client):
    assert await client.delete("/departments/d1") is None


@pytest.mark.asyncio
async def test_unreachable_backend_raises_connection_error(console_config):
    console_config.backend.api_base_url = "http://127.0.0.1:1/api"
    console_config.backend.max_retries = 0
    http = HttpClient(console_config)
    try:
        with pytest.raises(ConnectionException):
            await http.get("/departments")
    finally:
        await http.stop()
    assert http.get_statistics()["error_count"] == 1
