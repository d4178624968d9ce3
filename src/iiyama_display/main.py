"""Command-line entrypoint for controlling an iiyama display."""

from __future__ import annotations

import argparse
import asyncio
import importlib
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

import dotenv
import uvloop

from iiyama_display import const
from iiyama_display.config import ConfigError, DisplayConfig, load_config
from iiyama_display.correlation import correlation_context
from iiyama_display.device.controller import DisplayController
from iiyama_display.device.host import IDENT_INPUT, IDENT_POWER, VALUE_IDENTS
from iiyama_display.logging_abstraction import get_logger, set_level
from iiyama_display.metrics import start_metrics_server
from iiyama_display.protocol.exceptions import UnmappedEnumError
from iiyama_display.protocol.input_map import INPUT_LABELS, InputSource, parse_input

logger = get_logger(__name__)

DISABLED_POLL_RETRY_SECONDS = 1.0


def format_value(ident: str, value: object) -> str:
    """Render a reported value for humans."""
    if ident == IDENT_POWER and isinstance(value, bool):
        return "on" if value else "off"
    if ident == IDENT_INPUT and isinstance(value, int):
        try:
            return INPUT_LABELS[InputSource(value)]
        except ValueError:
            return str(value)
    return str(value)


class ConsoleHost:
    """DisplayHost for the command line: fixed config, values kept in memory."""

    def __init__(self, config: DisplayConfig):
        self.config = config
        self.values: dict[str, object] = {}
        self.interval_ms = 0

    def read_config(self) -> DisplayConfig:
        return self.config

    def report_value(self, ident: str, value: object) -> None:
        self.values[ident] = value
        logger.info(
            "%s = %s",
            ident,
            format_value(ident, value),
            extra={"device": self.config.device_label, "ident": ident, "value": value},
        )

    def schedule_next_poll(self, interval_ms: int) -> None:
        self.interval_ms = interval_ms
        logger.debug("Next poll in %dms", interval_ms, extra={"interval_ms": interval_ms})

    def print_values(self, out: TextIO | None = None) -> None:
        """Print every reported value in ident order."""
        for ident in VALUE_IDENTS:
            if ident in self.values:
                print(f"{ident}: {format_value(ident, self.values[ident])}", file=out or sys.stdout)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="iiyama-display", description="iiyama display LAN control")

    _ = parser.add_argument("--config", help="Path to a YAML config file", default=None, type=Path)
    _ = parser.add_argument("--env", help="Path to the environment file", default=None, type=Path)
    _ = parser.add_argument("--host", help="Display host or address", default=None)
    _ = parser.add_argument("--port", help="Display control port", default=None, type=int)
    _ = parser.add_argument("--monitor-id", help="Monitor ID (1..255)", default=None, type=int, dest="monitor_id")
    _ = parser.add_argument("-D", "--debug", action="store_true", help="Enable debug mode")
    _ = parser.add_argument(
        "--metrics-port",
        help="Serve Prometheus metrics on this port (0 = off)",
        default=None,
        type=int,
        dest="metrics_port",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    _ = sub.add_parser("poll", help="Poll once and print the display state")
    _ = sub.add_parser("run", help="Keep polling until interrupted")
    power = sub.add_parser("power", help="Switch the display on or off")
    _ = power.add_argument("state", choices=("on", "off"))
    volume = sub.add_parser("volume", help="Set the volume (0..100)")
    _ = volume.add_argument("value", type=int)
    source = sub.add_parser("input", help="Select an input by name or number")
    _ = source.add_argument("value")
    return parser


def parse_cli(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments, apply --debug and load --env."""
    args = build_parser().parse_args(argv)

    if args.debug:
        _enable_debug()
        logger.info("Debug mode enabled via CLI argument")

    if args.env:
        load_env_file(args.env)

    return args


def _enable_debug() -> None:
    set_level(logging.DEBUG)
    for name in ("iiyama_display.protocol", "iiyama_display.transport"):
        logging.getLogger(name).setLevel(logging.DEBUG)


def load_env_file(path: Path) -> bool:
    """Load a dotenv file and re-read the IIYAMA_* defaults.

    Returns:
        True if any variable was loaded
    """
    env_path = path.expanduser().resolve()
    if not env_path.exists():
        logger.error("Environment file not found", extra={"path": str(env_path)})
        return False

    loaded_any = dotenv.load_dotenv(env_path, override=True)
    if not loaded_any:
        logger.warning("No environment variables loaded from file", extra={"path": str(env_path)})
        return False

    importlib.reload(const)
    logger.info("Environment variables loaded", extra={"source": str(env_path)})
    return True


async def run_loop(controller: DisplayController, host: ConsoleHost, max_cycles: int | None = None) -> None:
    """Poll, then sleep whatever interval the controller asked for."""
    cycles = 0
    while max_cycles is None or cycles < max_cycles:
        _ = await controller.poll()
        cycles += 1
        delay = host.interval_ms / 1000 if host.interval_ms > 0 else DISABLED_POLL_RETRY_SECONDS
        await asyncio.sleep(delay)


async def run_command(args: argparse.Namespace, controller: DisplayController, host: ConsoleHost) -> int:
    """Execute the selected subcommand; returns the process exit code."""
    if args.command == "poll":
        ok = await controller.update_now()
        host.print_values()
        return 0 if ok else 1

    if args.command == "run":
        await run_loop(controller, host)
        return 0

    if args.command == "power":
        ok = await controller.set_power(args.state == "on")
    elif args.command == "volume":
        ok = await controller.set_volume(args.value)
    elif args.command == "input":
        try:
            value = parse_input(args.value)
        except UnmappedEnumError as e:
            logger.error(e.last_error, extra={"value": args.value})
            return 1
        ok = await controller.set_input(int(value))
    else:
        logger.error("Unknown command", extra={"command": args.command})
        return 1

    if not ok and host.values.get("LastError"):
        logger.error("✗ %s", host.values["LastError"])
    return 0 if ok else 1


def main(argv: Sequence[str] | None = None) -> int:
    """Run the iiyama-display entry point."""
    with correlation_context():
        logger.info("Starting iiyama-display", extra={"version": const.IIYAMA_VERSION})

        args = parse_cli(argv)
        if const.IIYAMA_DEBUG and not args.debug:
            _enable_debug()
            logger.info("Debug logging enabled via configuration")

        try:
            config = load_config(
                args.config or const.IIYAMA_CONFIG_FILE_PATH,
                host=args.host,
                port=args.port,
                monitor_id=args.monitor_id,
            )
        except ConfigError as e:
            logger.error("✗ Configuration error", extra={"error": e.last_error, "path": e.path})
            return 1

        metrics_port = args.metrics_port if args.metrics_port is not None else const.IIYAMA_METRICS_PORT
        if metrics_port > 0:
            start_metrics_server(metrics_port)
            logger.info("Metrics server started", extra={"port": metrics_port})

        host = ConsoleHost(config)
        controller = DisplayController(host)

        loop = uvloop.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            return loop.run_until_complete(run_command(args, controller, host))
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, shutting down...")
            return 0
        finally:
            loop.close()
            asyncio.set_event_loop(None)


if __name__ == "__main__":
    sys.exit(main())
