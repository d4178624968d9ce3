"""Poll and action cycles for one display.

:class:`DisplayController` ties the command layer to the reconciliation
state and the poll scheduler. Every cycle:

1. reads the configuration from the host,
2. takes the device lock (bounded wait, contention is a soft failure),
3. runs its transactions inside a fresh correlation context,
4. reports changed values and re-arms the host's poll timer.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import Final

from iiyama_display.config import DisplayConfig
from iiyama_display.correlation import correlation_context
from iiyama_display.device.commands import DisplayCommands, Transport, clamp_volume
from iiyama_display.device.host import (
    IDENT_FIRMWARE,
    IDENT_INPUT,
    IDENT_LAST_ERROR,
    IDENT_MODEL_NAME,
    IDENT_ONLINE,
    IDENT_OPERATING_HOURS,
    IDENT_POWER,
    IDENT_VOLUME,
    DisplayHost,
)
from iiyama_display.device.lock import DeviceLock, LockContentionError
from iiyama_display.device.scheduler import PollScheduler
from iiyama_display.device.state import DeviceState, DisplayedState
from iiyama_display.logging_abstraction import get_logger
from iiyama_display.metrics import (
    record_lock_contention,
    record_poll,
    set_online,
    set_pending_intents,
    set_poll_interval,
)
from iiyama_display.protocol.constants import LABEL_FIRMWARE, LABEL_MODEL
from iiyama_display.protocol.exceptions import ChecksumError, FrameLengthError, IiyamaError, UnmappedEnumError
from iiyama_display.protocol.input_map import input_to_type_code
from iiyama_display.transport import ConnectError, ReadTimeoutError, TCPTransport, WriteError

logger = get_logger(__name__)

LABEL_POLL_INTERVAL_SECONDS: Final = 600
FAST_POLL_AFTER_FAILURE_SECONDS: Final = 20
FAST_POLL_WHILE_PENDING_SECONDS: Final = 20
FAST_POLL_AFTER_CONTENTION_SECONDS: Final = 10
LOCK_TIMEOUT_SECONDS: Final = 2.0

# Failures that mean the display could not be reached at all
LINK_ERRORS: Final = (ConnectError, WriteError, ReadTimeoutError, FrameLengthError, ChecksumError)

TransportFactory = Callable[[DisplayConfig], Transport]


def tcp_transport_factory(config: DisplayConfig) -> Transport:
    """Default transport: one TCP connection per transaction."""
    return TCPTransport(config.host, config.port, timeout=config.timeout_ms / 1000)


class DisplayController:
    """Reconciles a display's reported state with user actions."""

    def __init__(
        self,
        host: DisplayHost,
        transport_factory: TransportFactory | None = None,
        clock: Callable[[], float] = time.time,
        lock_timeout: float = LOCK_TIMEOUT_SECONDS,
    ):
        self.host = host
        self.transport_factory = transport_factory or tcp_transport_factory
        self.clock = clock
        self.state = DeviceState()
        self.displayed = DisplayedState(host.report_value)
        self.scheduler = PollScheduler()
        self.lock = DeviceLock(lock_timeout)

    def _commands(self, config: DisplayConfig) -> DisplayCommands:
        return DisplayCommands(self.transport_factory(config), config.monitor_id, config.device_label)

    # Host-facing operations

    async def poll(self) -> bool:
        """Run one poll cycle.

        Returns:
            True if the display answered the power query
        """
        return await self._run_cycle("poll", self._poll_locked)

    async def update_now(self) -> bool:
        """Poll immediately."""
        return await self.poll()

    async def set_power(self, on: bool) -> bool:
        """Switch the display on or off."""
        return await self._run_cycle("set_power", lambda config: self._set_power_locked(config, bool(on)))

    async def set_volume(self, value: int) -> bool:
        """Set the volume (clamped to 0..100)."""
        return await self._run_cycle("set_volume", lambda config: self._set_volume_locked(config, int(value)))

    async def set_input(self, value: int) -> bool:
        """Select a logical input.

        While the display is off (or its power is unknown), or during the
        settling delay after power-on, the request is kept as a pending intent
        and sent by a later poll. Such a deferred request reports success.
        """
        return await self._run_cycle("set_input", lambda config: self._set_input_locked(config, int(value)))

    async def request_action(self, ident: str, value: object) -> bool:
        """Dispatch a host action by value ident.

        Values that are not numbers for Input/Volume are rejected with a
        last-error text instead of raising.
        """
        if ident == IDENT_POWER:
            return await self.set_power(bool(value))
        if ident in (IDENT_INPUT, IDENT_VOLUME):
            try:
                number = int(value)  # type: ignore[call-overload]
            except (TypeError, ValueError):
                message = f"Invalid value for {ident}: {value!r}"
                logger.warning("✗ %s", message, extra={"ident": ident, "value": value})
                self._set_last_error(message)
                return False
            if ident == IDENT_INPUT:
                return await self.set_input(number)
            return await self.set_volume(number)

        logger.warning("Unknown ident in request_action: %s", ident, extra={"ident": ident, "value": value})
        return False

    def update_poll_timer(self, config: DisplayConfig | None = None) -> int:
        """Compute the next poll interval and hand it to the host.

        Returns:
            Interval in seconds (0 when no host is configured)
        """
        if config is None:
            config = self.host.read_config()
        now = self.clock()

        interval = 0
        if config.is_configured:
            interval = self.scheduler.next_interval(now, config.poll_slow, config.poll_fast)

        set_poll_interval(config.device_label, interval)
        set_pending_intents(config.device_label, self.state.active_pending_count(now))
        self.host.schedule_next_poll(interval * 1000)
        return interval

    # Cycle plumbing

    async def _run_cycle(self, operation: str, body: Callable[[DisplayConfig], Awaitable[bool]]) -> bool:
        config = self.host.read_config()
        with correlation_context():
            try:
                async with self.lock.hold(operation):
                    ok = await body(config)
            except LockContentionError as e:
                logger.warning(
                    "Device lock busy, skipping %s",
                    operation,
                    extra={"device": config.device_label, "operation": operation, "timeout": e.timeout},
                )
                record_lock_contention(config.device_label, operation)
                self.scheduler.enter_fast_poll(FAST_POLL_AFTER_CONTENTION_SECONDS, self.clock())
                ok = False
            self.update_poll_timer(config)
        return ok

    def _set_online(self, config: DisplayConfig, online: bool, error: str) -> None:
        self.displayed.set_if_changed(IDENT_ONLINE, online)
        set_online(config.device_label, online)
        self._set_last_error(error)

    def _set_last_error(self, message: str) -> None:
        self.displayed.set_if_changed(IDENT_LAST_ERROR, message)

    # Poll

    async def _poll_locked(self, config: DisplayConfig) -> bool:
        label = config.device_label
        if not config.is_configured:
            logger.warning("Host not configured, poll skipped")
            self._set_online(config, False, "Host not configured")
            record_poll(label, "unconfigured")
            return False

        logger.debug("→ Starting poll", extra={"device": label})
        try:
            return await self._poll_device(config)
        except Exception as e:
            logger.exception("✗ Poll failed with unexpected error", extra={"device": label, "error": str(e)})
            self._set_online(config, False, f"Exception: {e}")
            record_poll(label, "exception")
            return False

    async def _poll_device(self, config: DisplayConfig) -> bool:
        label = config.device_label
        commands = self._commands(config)
        now = self.clock()

        try:
            power = await commands.get_power()
        except IiyamaError as e:
            logger.warning(
                "✗ Power query failed: %s",
                e.last_error,
                extra={"device": label, "reason": e.reason},
            )
            self._set_online(config, False, "No response (Power)")
            record_poll(label, "offline")
            return False

        previous_power = self.displayed.get(IDENT_POWER)
        self.state.reconcile(IDENT_POWER, power, now, self.displayed)
        # First poll has no previous value and never counts as a transition
        if previous_power is False and power:
            self.state.open_input_delay(now, config.input_delay_after_power_on_ms)
            logger.info(
                "Display powered on, holding input changes for %dms",
                max(0, config.input_delay_after_power_on_ms),
                extra={"device": label},
            )

        errors: list[str] = []

        try:
            source = await commands.get_input()
        except IiyamaError as e:
            errors.append(self._field_failed(label, IDENT_INPUT, e))
        else:
            self.state.reconcile(IDENT_INPUT, int(source), now, self.displayed)

        try:
            volume = await commands.get_volume()
        except IiyamaError as e:
            errors.append(self._field_failed(label, IDENT_VOLUME, e))
        else:
            self.state.reconcile(IDENT_VOLUME, volume, now, self.displayed)

        try:
            hours = await commands.get_operating_hours()
        except IiyamaError as e:
            errors.append(self._field_failed(label, IDENT_OPERATING_HOURS, e))
        else:
            self.displayed.set_if_changed(IDENT_OPERATING_HOURS, hours)

        if self.state.labels_due(now, LABEL_POLL_INTERVAL_SECONDS):
            self.state.last_info_poll = now
            for ident, selector in ((IDENT_MODEL_NAME, LABEL_MODEL), (IDENT_FIRMWARE, LABEL_FIRMWARE)):
                try:
                    text = await commands.get_label(selector)
                except IiyamaError as e:
                    errors.append(self._field_failed(label, ident, e))
                else:
                    self.displayed.set_if_changed(ident, text)

        self._set_online(config, True, errors[0] if errors else "")
        record_poll(label, "partial" if errors else "ok")

        await self._update_fast_poll_by_pending(config, commands)
        logger.debug(
            "✓ Poll complete",
            extra={"device": label, "power": power, "errors": len(errors)},
        )
        return True

    @staticmethod
    def _field_failed(label: str, ident: str, error: IiyamaError) -> str:
        logger.warning(
            "Reading %s failed: %s",
            ident,
            error.last_error,
            extra={"device": label, "field": ident, "reason": error.reason},
        )
        return error.last_error

    async def _update_fast_poll_by_pending(self, config: DisplayConfig, commands: DisplayCommands) -> None:
        now = self.clock()
        keep_fast = self.state.has_active_pending(now) or self.state.in_input_delay(now)

        await self._apply_pending_input(config, commands, now)

        if keep_fast:
            self.scheduler.enter_fast_poll(FAST_POLL_WHILE_PENDING_SECONDS, now)

    async def _apply_pending_input(self, config: DisplayConfig, commands: DisplayCommands, now: float) -> None:
        if self.state.in_input_delay(now):
            return
        intent = self.state.active_pending(IDENT_INPUT, now)
        if intent is None:
            return
        if not self.displayed.get(IDENT_POWER):
            return

        logger.info("→ Applying deferred input %d", intent.target, extra={"device": config.device_label})
        try:
            ok = await commands.set_input(intent.target)
        except IiyamaError as e:
            logger.warning(
                "✗ Deferred input failed: %s",
                e.last_error,
                extra={"device": config.device_label, "reason": e.reason},
            )
            self._set_last_error(e.last_error)
            return
        if ok:
            self.state.clear_pending(IDENT_INPUT)
            logger.info("✓ Deferred input applied", extra={"device": config.device_label, "input": intent.target})

    # Actions

    async def _send(self, config: DisplayConfig, send: Callable[[DisplayCommands], Awaitable[bool]]) -> bool:
        if not config.is_configured:
            self._set_online(config, False, "Host not configured")
            return False
        try:
            return await send(self._commands(config))
        except LINK_ERRORS as e:
            logger.warning("✗ Set failed: %s", e.last_error, extra={"device": config.device_label, "reason": e.reason})
            self._set_online(config, False, e.last_error)
        except IiyamaError as e:
            logger.warning("✗ Set rejected: %s", e.last_error, extra={"device": config.device_label, "reason": e.reason})
            self._set_last_error(e.last_error)
        except Exception as e:
            logger.exception(
                "✗ Set failed with unexpected error",
                extra={"device": config.device_label, "error": str(e)},
            )
            self._set_online(config, False, f"Exception: {e}")
        return False

    def _after_set(self, config: DisplayConfig, ok: bool) -> None:
        seconds = config.fast_after_change if ok else FAST_POLL_AFTER_FAILURE_SECONDS
        self.scheduler.enter_fast_poll(seconds, self.clock())

    async def _set_power_locked(self, config: DisplayConfig, on: bool) -> bool:
        self.state.set_pending(IDENT_POWER, on, self.clock())
        self.displayed.set_if_changed(IDENT_POWER, on)

        logger.info("→ Setting power %s", "on" if on else "off", extra={"device": config.device_label})
        ok = await self._send(config, lambda commands: commands.set_power(on))
        self._after_set(config, ok)
        return ok

    async def _set_volume_locked(self, config: DisplayConfig, value: int) -> bool:
        volume = clamp_volume(value)
        self.state.set_pending(IDENT_VOLUME, volume, self.clock())
        self.displayed.set_if_changed(IDENT_VOLUME, volume)

        logger.info("→ Setting volume %d", volume, extra={"device": config.device_label, "requested": value})
        ok = await self._send(config, lambda commands: commands.set_volume(volume))
        self._after_set(config, ok)
        return ok

    async def _set_input_locked(self, config: DisplayConfig, value: int) -> bool:
        try:
            input_to_type_code(value)
        except UnmappedEnumError as e:
            logger.warning("✗ %s", e.last_error, extra={"device": config.device_label})
            self._set_last_error(e.last_error)
            self._after_set(config, False)
            return False

        now = self.clock()
        self.state.set_pending(IDENT_INPUT, value, now)
        self.displayed.set_if_changed(IDENT_INPUT, value)

        if not self.displayed.get(IDENT_POWER):
            logger.info("Display off, input %d deferred", value, extra={"device": config.device_label})
            self.scheduler.enter_fast_poll(FAST_POLL_AFTER_FAILURE_SECONDS, now)
            return True
        if self.state.in_input_delay(now):
            logger.info("Input delay active, input %d deferred", value, extra={"device": config.device_label})
            self.scheduler.enter_fast_poll(FAST_POLL_AFTER_FAILURE_SECONDS, now)
            return True

        logger.info("→ Setting input %d", value, extra={"device": config.device_label})
        ok = await self._send(config, lambda commands: commands.set_input(value))
        self._after_set(config, ok)
        return ok
