"""Metrics module."""

from .registry import (
    record_decode_error,
    record_lock_contention,
    record_poll,
    record_transaction,
    record_transaction_latency,
    set_online,
    set_pending_intents,
    set_poll_interval,
    start_metrics_server,
)

__all__ = [
    "record_decode_error",
    "record_lock_contention",
    "record_poll",
    "record_transaction",
    "record_transaction_latency",
    "set_online",
    "set_pending_intents",
    "set_poll_interval",
    "start_metrics_server",
]
