"""API integration tests."""

import asyncio
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from hotreload import __version__
from hotreload.api.app import create_app
from hotreload.reload import Manager, NotifierFromQueue


@pytest.fixture
def trigger_queue() -> asyncio.Queue[str]:
    return asyncio.Queue(maxsize=1)


@pytest.fixture
def manager(trigger_queue: asyncio.Queue[str]) -> Manager:
    manager = Manager()
    manager.add(0, lambda trigger_id: None)
    manager.on(NotifierFromQueue(trigger_queue))
    return manager


@pytest.fixture
async def client(manager: Manager, trigger_queue: asyncio.Queue[str]) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    app = create_app(manager, trigger_queue)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHealthEndpoint:
    """Tests for health endpoint."""

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": __version__}


class TestReloadEndpoint:
    """Tests for the reload trigger endpoint."""

    async def test_trigger_reload(self, client: AsyncClient, trigger_queue: asyncio.Queue[str]):
        response = await client.post("/-/reload")

        assert response.status_code == 202
        assert response.json() == {"trigger_id": "http", "accepted": True}
        assert trigger_queue.get_nowait() == "http"

    async def test_custom_trigger_id(self, client: AsyncClient, trigger_queue: asyncio.Queue[str]):
        response = await client.post("/-/reload", params={"id": "deploy-42"})

        assert response.status_code == 202
        assert trigger_queue.get_nowait() == "deploy-42"

    async def test_pending_trigger_rejects_new_ones(self, client: AsyncClient, trigger_queue: asyncio.Queue[str]):
        assert (await client.post("/-/reload")).status_code == 202

        response = await client.post("/-/reload")
        assert response.status_code == 409
        assert trigger_queue.qsize() == 1

    async def test_endpoint_drives_manager(self, client: AsyncClient, manager: Manager):
        """A trigger posted over HTTP runs a reload cycle."""
        stop = asyncio.Event()
        task = asyncio.create_task(manager.run(stop))

        assert (await client.post("/-/reload")).status_code == 202
        async with asyncio.timeout(1.0):
            while manager.status()["cycles_completed"] < 1:
                await asyncio.sleep(0.005)

        stop.set()
        await asyncio.wait_for(task, 1.0)


class TestStatusEndpoint:
    """Tests for the status endpoint."""

    async def test_status(self, client: AsyncClient):
        response = await client.get("/-/status")

        assert response.status_code == 200
        data = response.json()
        assert data["running"] is False
        assert data["in_flight"] is False
        assert data["notifiers"] == 1
        assert data["groups"] == [{"priority": 0, "reloaders": 1}]
