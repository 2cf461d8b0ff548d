from unittest.mock import AsyncMock, patch

import pytest
from aiohttp.test_utils import TestClient, TestServer

from proxybot.bot import build_services
from proxybot.server import create_app


@pytest.fixture
def services(settings):
    return build_services(settings)


@pytest.fixture
async def client(services):
    app = create_app(services=services)
    # The database pool belongs to the database fixtures
    with patch("proxybot.server.close_pool", AsyncMock()):
        async with TestClient(TestServer(app)) as test_client:
            yield test_client


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status == 200
    assert await response.text() == "ok"


@pytest.mark.asyncio
async def test_event_without_type_is_rejected(client):
    response = await client.post("/events", json={"d": {}})

    assert response.status == 400
    assert (await response.json())["required_field"] == "t"


@pytest.mark.asyncio
async def test_empty_event_body_is_accepted(client):
    response = await client.post("/events", data=b"")

    assert response.status == 200


@pytest.mark.asyncio
async def test_event_is_dispatched(client, services):
    update = {"t": "TYPING_START", "d": {}}
    with patch(
        "proxybot.server.dispatch_update", AsyncMock(return_value="proxy_relayed")
    ) as dispatch:
        response = await client.post("/events", json=update)

    assert response.status == 200
    assert await response.json() == {"result": "proxy_relayed"}
    dispatch.assert_awaited_once_with(services, update)


@pytest.mark.asyncio
async def test_unknown_event_type_is_unhandled(client):
    response = await client.post("/events", json={"t": "TYPING_START", "d": {}})

    assert await response.json() == {"result": "unhandled"}


@pytest.mark.asyncio
async def test_handler_failure_still_returns_200(client):
    with patch(
        "proxybot.server.dispatch_update", AsyncMock(side_effect=RuntimeError("boom"))
    ):
        response = await client.post("/events", json={"t": "MESSAGE_CREATE", "d": {}})

    assert response.status == 200
    assert await response.json() == {"message": "Error processing event"}


@pytest.mark.asyncio
async def test_lookup_rejects_garbage(client):
    response = await client.get("/messages/not-a-message")

    assert response.status == 400
    assert "not-a-message" in (await response.json())["error"]


@pytest.mark.asyncio
async def test_lookup_miss_is_404(client, services):
    services.registry.get = AsyncMock(return_value=None)

    response = await client.get("/messages/1000000000000000009")

    assert response.status == 404
    assert "1000000000000000009" in (await response.json())["error"]


@pytest.mark.asyncio
async def test_lookup_returns_record(client, services, sample_record):
    services.registry.get = AsyncMock(return_value=sample_record)

    response = await client.get("/messages/1000000000000000001")

    assert response.status == 200
    body = await response.json()
    assert body["relayed_message_id"] == "1000000000000000002"
    assert body["persona_name"] == "Alice"
    assert body["created_at"] == "2024-05-01T12:00:00+00:00"
    services.registry.get.assert_awaited_once_with(1000000000000000001)


@pytest.mark.asyncio
async def test_shutdown_closes_pool_and_ops_client(services):
    app = create_app(services=services)
    with (
        patch("proxybot.server.close_pool", AsyncMock()) as close_pool,
        patch("proxybot.server.close_ops_logging", AsyncMock()) as close_ops,
    ):
        async with TestClient(TestServer(app)):
            pass

    close_pool.assert_awaited_once()
    close_ops.assert_awaited_once()
