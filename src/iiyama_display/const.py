import os

from iiyama_display import __version__

__all__ = [
    "DEFAULT_PORT",
    "IIYAMA_CONFIG_FILE_PATH",
    "IIYAMA_DEBUG",
    "IIYAMA_FAST_AFTER_CHANGE",
    "IIYAMA_HOST",
    "IIYAMA_INPUT_DELAY_MS",
    "IIYAMA_LOG_FORMAT",
    "IIYAMA_LOG_HUMAN_OUTPUT",
    "IIYAMA_LOG_JSON_FILE",
    "IIYAMA_METRICS_PORT",
    "IIYAMA_MONITOR_ID",
    "IIYAMA_PERF_THRESHOLD_MS",
    "IIYAMA_PERF_TRACKING",
    "IIYAMA_POLL_FAST",
    "IIYAMA_POLL_SLOW",
    "IIYAMA_PORT",
    "IIYAMA_TIMEOUT_MS",
    "IIYAMA_VERSION",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
IIYAMA_VERSION: str = __version__

DEFAULT_PORT = 5000


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Connection / protocol
IIYAMA_HOST: str = os.environ.get("IIYAMA_HOST", "").strip()
IIYAMA_PORT: int = _env_int("IIYAMA_PORT", DEFAULT_PORT)
IIYAMA_MONITOR_ID: int = _env_int("IIYAMA_MONITOR_ID", 1)
IIYAMA_TIMEOUT_MS: int = _env_int("IIYAMA_TIMEOUT_MS", 1000)

# Polling / UX
IIYAMA_POLL_SLOW: int = _env_int("IIYAMA_POLL_SLOW", 15)
IIYAMA_POLL_FAST: int = _env_int("IIYAMA_POLL_FAST", 2)
IIYAMA_FAST_AFTER_CHANGE: int = _env_int("IIYAMA_FAST_AFTER_CHANGE", 30)
IIYAMA_INPUT_DELAY_MS: int = _env_int("IIYAMA_INPUT_DELAY_MS", 8000)

_config_file = os.environ.get("IIYAMA_CONFIG_FILE", "")
IIYAMA_CONFIG_FILE_PATH: str | None = _config_file if _config_file else None

IIYAMA_DEBUG: bool = os.environ.get("IIYAMA_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
IIYAMA_LOG_FORMAT: str = os.environ.get("IIYAMA_LOG_FORMAT", "human")  # "json", "human", or "both"
IIYAMA_LOG_JSON_FILE: str = os.environ.get("IIYAMA_LOG_JSON_FILE", "")
IIYAMA_LOG_HUMAN_OUTPUT: str = os.environ.get("IIYAMA_LOG_HUMAN_OUTPUT", "stderr")  # "stdout", "stderr", or file path

# Performance Instrumentation
IIYAMA_PERF_TRACKING: bool = os.environ.get("IIYAMA_PERF_TRACKING", "true").casefold() in YES_ANSWER
_perf_threshold = os.environ.get("IIYAMA_PERF_THRESHOLD_MS", "500")
IIYAMA_PERF_THRESHOLD_MS: int = int(_perf_threshold) if _perf_threshold and _perf_threshold.isdigit() else 500

# 0 disables the Prometheus exporter
IIYAMA_METRICS_PORT: int = _env_int("IIYAMA_METRICS_PORT", 0)
