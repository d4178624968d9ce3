"""Ephemeral per-device state and the pending-intent reconciliation rules.

A user action creates a :class:`PendingIntent` for the property it changes.
While the intent is unexpired, polled values that disagree with it are not
shown, so the UI does not flip back while the display is still catching up.

Per property:

* no pending intent: the displayed value follows every successful poll;
* pending, unexpired, mismatched: the displayed value stays at the target;
* pending, unexpired, matched: the intent is cleared, the value is shown;
* pending, expired: the intent is dropped and the polled value is shown.

Nothing here survives a process restart.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Final

from iiyama_display.device.host import IDENT_INPUT, IDENT_POWER, IDENT_VOLUME

MIN_PENDING_TTL_SECONDS: Final = 5

PENDING_TTL_SECONDS: Final = {
    IDENT_POWER: 20,
    IDENT_VOLUME: 15,
    IDENT_INPUT: 40,
}


@dataclass
class PendingIntent:
    """A requested value awaiting confirmation by the display."""

    target: int
    expires_at: float

    def is_active(self, now: float) -> bool:
        """True until ``now`` passes ``expires_at``."""
        return now <= self.expires_at


class DisplayedState:
    """Last values surfaced to the host.

    Values are only forwarded when they differ from what was last reported.
    """

    def __init__(self, report: Callable[[str, object], None]):
        self._values: dict[str, object] = {}
        self._report = report

    def get(self, ident: str) -> object | None:
        """Return the last reported value, None if never reported."""
        return self._values.get(ident)

    def set_if_changed(self, ident: str, value: object) -> bool:
        """Report ``value`` unless it equals the current one.

        Returns:
            True if the value was reported
        """
        if ident in self._values:
            current = self._values[ident]
            if type(current) is type(value) and current == value:
                return False
        self._values[ident] = value
        self._report(ident, value)
        return True

    def snapshot(self) -> dict[str, object]:
        """Copy of all displayed values."""
        return dict(self._values)


@dataclass
class DeviceState:
    """Pending intents and timing windows of one display.

    Attributes:
        pending: Unconfirmed intents keyed by property ident
        input_delay_until: End of the post power-on input delay (0 = never opened)
        last_info_poll: Time model/firmware labels were last requested

    """

    pending: dict[str, PendingIntent] = field(default_factory=dict)
    input_delay_until: float = 0.0
    last_info_poll: float = 0.0

    def set_pending(self, ident: str, target: int, now: float, ttl: float | None = None) -> PendingIntent:
        """Record an intent for ``ident`` (TTL floored at 5 seconds)."""
        if ttl is None:
            ttl = PENDING_TTL_SECONDS.get(ident, MIN_PENDING_TTL_SECONDS)
        ttl = max(MIN_PENDING_TTL_SECONDS, ttl)
        intent = PendingIntent(target=target, expires_at=now + ttl)
        self.pending[ident] = intent
        return intent

    def clear_pending(self, ident: str) -> None:
        """Forget the intent for ``ident`` (no-op if none)."""
        self.pending.pop(ident, None)

    def active_pending(self, ident: str, now: float) -> PendingIntent | None:
        """Return the unexpired intent for ``ident``, if any."""
        intent = self.pending.get(ident)
        if intent is not None and intent.is_active(now):
            return intent
        return None

    def active_pending_count(self, now: float) -> int:
        """Number of unexpired intents."""
        return sum(1 for intent in self.pending.values() if intent.is_active(now))

    def has_active_pending(self, now: float) -> bool:
        """True if any intent is unexpired."""
        return self.active_pending_count(now) > 0

    def reconcile(self, ident: str, polled: int, now: float, displayed: DisplayedState) -> bool:
        """Apply a freshly polled value according to the pending rules.

        Returns:
            True if the polled value is what the host now sees
        """
        intent = self.pending.get(ident)
        if intent is not None and intent.is_active(now):
            if intent.target != polled:
                return False
            self.clear_pending(ident)
            displayed.set_if_changed(ident, polled)
            return True

        self.clear_pending(ident)
        displayed.set_if_changed(ident, polled)
        return True

    def open_input_delay(self, now: float, delay_ms: int) -> None:
        """Start the input settling window after an Off→On transition."""
        self.input_delay_until = now + max(0, delay_ms) / 1000

    def in_input_delay(self, now: float) -> bool:
        """True while input changes must be withheld."""
        if self.input_delay_until <= 0:
            return False
        return now < self.input_delay_until

    def labels_due(self, now: float, interval: float) -> bool:
        """True on the first cycle and once ``interval`` seconds have passed."""
        return self.last_info_poll <= 0 or (now - self.last_info_poll) >= interval
