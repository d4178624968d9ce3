"""Fixtures for integration tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from tests.helpers.fake_display import FakeDisplay
from tests.helpers.mock_display_server import MockDisplayServer


@pytest.fixture
def fake_display():
    return FakeDisplay()


@pytest_asyncio.fixture
async def mock_display(fake_display) -> AsyncGenerator[MockDisplayServer]:
    server = MockDisplayServer(fake_display)
    await server.start()
    yield server
    await server.stop()
