"""Prometheus metrics registry for display communication."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

# Transaction metrics
iiyama_transaction_total: Final = Counter(  # type: ignore[assignment]
    "iiyama_transaction_total",
    "Total request/response transactions",
    ["device", "command", "outcome"],
)

iiyama_transaction_latency_seconds: Final = Histogram(  # type: ignore[assignment]
    "iiyama_transaction_latency_seconds",
    "Transaction round-trip latency in seconds (connect to close)",
    ["device"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

iiyama_decode_errors_total: Final = Counter(  # type: ignore[assignment]
    "iiyama_decode_errors_total",
    "Total frame decode errors",
    ["device", "reason"],
)

# Poll / reconciliation metrics
iiyama_poll_total: Final = Counter(  # type: ignore[assignment]
    "iiyama_poll_total",
    "Total poll cycles",
    ["device", "outcome"],
)

iiyama_lock_contention_total: Final = Counter(  # type: ignore[assignment]
    "iiyama_lock_contention_total",
    "Total cycles skipped because the device lock was busy",
    ["device", "operation"],
)

iiyama_online: Final = Gauge(  # type: ignore[assignment]
    "iiyama_online",
    "1 if the last poll reached the display, 0 otherwise",
    ["device"],
)

iiyama_pending_intents: Final = Gauge(  # type: ignore[assignment]
    "iiyama_pending_intents",
    "Number of unconfirmed user intents",
    ["device"],
)

iiyama_poll_interval_seconds: Final = Gauge(  # type: ignore[assignment]
    "iiyama_poll_interval_seconds",
    "Currently scheduled poll interval (0 = disabled)",
    ["device"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_transaction(device: str, command: int, outcome: str) -> None:
    """Record a completed (or failed) transaction."""
    iiyama_transaction_total.labels(device=device, command=f"0x{command:02X}", outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_transaction_latency(device: str, latency_seconds: float) -> None:
    """Record transaction latency."""
    iiyama_transaction_latency_seconds.labels(device=device).observe(latency_seconds)  # type: ignore[no-untyped-call]


def record_decode_error(device: str, reason: str) -> None:
    """Record a decode error."""
    iiyama_decode_errors_total.labels(device=device, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_poll(device: str, outcome: str) -> None:
    """Record a poll cycle outcome."""
    iiyama_poll_total.labels(device=device, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_lock_contention(device: str, operation: str) -> None:
    """Record a skipped cycle due to lock contention."""
    iiyama_lock_contention_total.labels(device=device, operation=operation).inc()  # type: ignore[no-untyped-call]


def set_online(device: str, online: bool) -> None:
    """Set the online gauge."""
    iiyama_online.labels(device=device).set(1 if online else 0)  # type: ignore[no-untyped-call]


def set_pending_intents(device: str, count: int) -> None:
    """Set the number of pending intents."""
    iiyama_pending_intents.labels(device=device).set(count)  # type: ignore[no-untyped-call]


def set_poll_interval(device: str, seconds: float) -> None:
    """Set the currently scheduled poll interval."""
    iiyama_poll_interval_seconds.labels(device=device).set(seconds)  # type: ignore[no-untyped-call]
