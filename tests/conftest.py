"""Pytest configuration and fixtures."""

import asyncio

import pytest

from hotreload.events import EventBus


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def stop_event() -> asyncio.Event:
    """Event that ends a manager run cleanly."""
    return asyncio.Event()


@pytest.fixture
def event_bus_fixture() -> EventBus:
    """Create a fresh event bus for each test."""
    return EventBus()
