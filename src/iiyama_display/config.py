"""Display configuration model and loaders.

Defaults come from ``IIYAMA_*`` environment variables (see const.py). A YAML
file may override any of them:

    host: 192.168.1.50
    port: 5000
    monitor_id: 1
    timeout_ms: 1000
    poll_slow: 15
    poll_fast: 2
    fast_after_change: 30
    input_delay_after_power_on_ms: 8000
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from iiyama_display import const
from iiyama_display.protocol.exceptions import IiyamaError

__all__ = ["ConfigError", "DisplayConfig", "config_from_env", "load_config"]


class ConfigError(IiyamaError):
    """Configuration file missing or invalid."""

    def __init__(self, reason: str, path: str | Path | None = None):
        self.path = str(path) if path is not None else None
        super().__init__(reason, f"Invalid configuration: {reason}")


class DisplayConfig(BaseModel):
    """Settings read by the controller on every poll and action.

    The port must be 1..65535. Other values are stored as given; floors and
    clamps (timeout >= 250ms, slow poll >= 5s, fast poll >= 2s, monitor id
    1..255, delay >= 0) are applied where the values are used.
    """

    model_config = ConfigDict(extra="ignore")

    host: str = ""
    port: int = Field(default=const.DEFAULT_PORT, ge=1, le=65535)
    monitor_id: int = 1
    timeout_ms: int = 1000

    poll_slow: int = 15
    poll_fast: int = 2
    fast_after_change: int = 30
    input_delay_after_power_on_ms: int = 8000

    @field_validator("host", mode="before")
    @classmethod
    def _strip_host(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @property
    def is_configured(self) -> bool:
        """True when a host has been set."""
        return bool(self.host)

    @property
    def device_label(self) -> str:
        """Short identifier used in logs and metric labels."""
        return f"{self.host or '-'}:{self.port}#{self.monitor_id}"


def config_from_env() -> DisplayConfig:
    """Build a configuration from the ``IIYAMA_*`` environment defaults."""
    return DisplayConfig(
        host=const.IIYAMA_HOST,
        port=const.IIYAMA_PORT,
        monitor_id=const.IIYAMA_MONITOR_ID,
        timeout_ms=const.IIYAMA_TIMEOUT_MS,
        poll_slow=const.IIYAMA_POLL_SLOW,
        poll_fast=const.IIYAMA_POLL_FAST,
        fast_after_change=const.IIYAMA_FAST_AFTER_CHANGE,
        input_delay_after_power_on_ms=const.IIYAMA_INPUT_DELAY_MS,
    )


def load_config(path: str | Path | None = None, **overrides: Any) -> DisplayConfig:
    """Load configuration: environment defaults, then YAML file, then overrides.

    Overrides whose value is None are skipped so CLI options that were not
    given do not mask file values.

    Raises:
        ConfigError: file missing, unreadable, not a mapping, or invalid values
    """
    try:
        values: dict[str, Any] = config_from_env().model_dump()
    except ValidationError as e:
        raise ConfigError(f"invalid_environment ({e.error_count()} errors)") from e

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise ConfigError("file_not_found", config_path)
        try:
            with config_path.open(encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"unreadable ({type(e).__name__})", config_path) from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError("not_a_mapping", config_path)
        values.update(loaded)

    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return DisplayConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigError(f"invalid_values ({e.error_count()} errors)", path) from e
