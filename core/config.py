"""Engine configuration.

Reads settings from environment variables. A `.env` file at the project root
is loaded first if it exists:
- ORDER_ENGINE_MAX_BULK_LINES: Max non-blank lines in a bulk request (default 50)
- ORDER_ENGINE_MAX_INVOICE_BYTES: Max invoice XML size (default 10 MB)
- ORDER_ENGINE_MATCHING_STRATEGY: "description_prefix" or "supplier_code"
- ORDER_ENGINE_LOG_LEVEL: Logging level name (default INFO)
- ORDER_ENGINE_LOG_JSON: "true" for JSON log lines
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
env_path = Path(__file__).resolve().parents[1] / ".env"
if env_path.exists():
    load_dotenv(env_path)


DEFAULT_MAX_BULK_LINES = 50
DEFAULT_MAX_INVOICE_BYTES = 10 * 1024 * 1024
DEFAULT_MATCHING_STRATEGY = "description_prefix"
MATCHING_STRATEGIES = ("description_prefix", "supplier_code")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the engine."""
    max_bulk_lines: int = DEFAULT_MAX_BULK_LINES
    max_invoice_bytes: int = DEFAULT_MAX_INVOICE_BYTES
    matching_strategy: str = DEFAULT_MATCHING_STRATEGY
    log_level: int = logging.INFO
    log_json: bool = False


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _level_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"{name} is not a logging level: {raw!r}")
    return level


def load_settings() -> Settings:
    """Build Settings from the current environment.

    Raises:
        ValueError: If a variable is set to an invalid value
    """
    strategy = os.getenv("ORDER_ENGINE_MATCHING_STRATEGY", DEFAULT_MATCHING_STRATEGY)
    strategy = strategy.strip().lower() or DEFAULT_MATCHING_STRATEGY
    if strategy not in MATCHING_STRATEGIES:
        raise ValueError(
            f"ORDER_ENGINE_MATCHING_STRATEGY must be one of {MATCHING_STRATEGIES}, "
            f"got {strategy!r}"
        )

    return Settings(
        max_bulk_lines=_int_env("ORDER_ENGINE_MAX_BULK_LINES", DEFAULT_MAX_BULK_LINES),
        max_invoice_bytes=_int_env("ORDER_ENGINE_MAX_INVOICE_BYTES", DEFAULT_MAX_INVOICE_BYTES),
        matching_strategy=strategy,
        log_level=_level_env("ORDER_ENGINE_LOG_LEVEL", logging.INFO),
        log_json=_bool_env("ORDER_ENGINE_LOG_JSON", False),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return process-wide settings (cached; call get_settings.cache_clear() to reload)."""
    return load_settings()
