"""
Shared fixtures for unit tests.

Provides a controllable clock, a recording DisplayHost and an in-memory
display for driving DisplayController without sockets.
"""

from __future__ import annotations

import pytest

from iiyama_display.config import DisplayConfig
from iiyama_display.device.controller import DisplayController
from tests.helpers.fake_display import FakeDisplay

START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class RecordingHost:
    """DisplayHost that remembers every report and timer request."""

    def __init__(self, config: DisplayConfig):
        self.config = config
        self.reports: list[tuple[str, object]] = []
        self.values: dict[str, object] = {}
        self.intervals: list[int] = []

    def read_config(self) -> DisplayConfig:
        return self.config

    def report_value(self, ident: str, value: object) -> None:
        self.reports.append((ident, value))
        self.values[ident] = value

    def schedule_next_poll(self, interval_ms: int) -> None:
        self.intervals.append(interval_ms)

    def reported(self, ident: str) -> list[object]:
        """Every value reported for ``ident``, in order."""
        return [value for name, value in self.reports if name == ident]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def display_config():
    return DisplayConfig(
        host="192.0.2.10",
        port=5000,
        monitor_id=1,
        timeout_ms=500,
        poll_slow=15,
        poll_fast=2,
        fast_after_change=30,
        input_delay_after_power_on_ms=8000,
    )


@pytest.fixture
def display():
    """In-memory display, powered on, HDMI1, volume 30."""
    return FakeDisplay()


@pytest.fixture
def host(display_config):
    return RecordingHost(display_config)


@pytest.fixture
def controller(host, display, clock):
    """DisplayController wired to the fake display and clock."""
    return DisplayController(host, transport_factory=lambda _config: display, clock=clock, lock_timeout=0.1)
