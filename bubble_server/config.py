"""
Runtime configuration.

Every setting comes from an environment variable with a default:

    BUBBLE_DATA_PATH               SQLite preference database
    BUBBLE_SAVE_DEBOUNCE_SECONDS   quiet window before a changed collection is written
    BUBBLE_WRITER_QUEUE_SIZE       bound of the writer's change queue
    BUBBLE_FIRST_WEEKDAY           first column of the calendar grid
    BUBBLE_SERVICE_HOST / _PORT    REST service bind address
"""
from __future__ import annotations

import calendar
import os
from dataclasses import dataclass, field
from pathlib import Path
import typing as t

DEFAULT_DATA_DIR = Path.home() / ".bubblelife"

WEEKDAYS = {name.lower(): index for index, name in enumerate(calendar.day_name)}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_weekday(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return WEEKDAYS[raw.strip().lower()]
    except KeyError:
        raise ValueError(f"{name} must be a weekday name, got {raw!r}")


@dataclass(frozen=True)
class BubbleConfig:
    """Resolved configuration for the store and its front ends."""
    data_path: Path = field(default_factory=lambda: DEFAULT_DATA_DIR / "preferences.db")
    save_debounce_seconds: float = 1.0
    writer_queue_size: int = 64
    first_weekday: int = calendar.SUNDAY
    service_host: str = "127.0.0.1"
    service_port: int = 8004

    @classmethod
    def from_env(cls) -> BubbleConfig:
        data_path = os.getenv("BUBBLE_DATA_PATH")
        config = cls(
            data_path=Path(data_path).expanduser() if data_path else DEFAULT_DATA_DIR / "preferences.db",
            save_debounce_seconds=_env_float("BUBBLE_SAVE_DEBOUNCE_SECONDS", 1.0),
            writer_queue_size=_env_int("BUBBLE_WRITER_QUEUE_SIZE", 64),
            first_weekday=_env_weekday("BUBBLE_FIRST_WEEKDAY", calendar.SUNDAY),
            service_host=os.getenv("BUBBLE_SERVICE_HOST", "127.0.0.1"),
            service_port=_env_int("BUBBLE_SERVICE_PORT", 8004),
        )
        if config.save_debounce_seconds < 0:
            raise ValueError("BUBBLE_SAVE_DEBOUNCE_SECONDS must not be negative")
        if config.writer_queue_size < 1:
            raise ValueError("BUBBLE_WRITER_QUEUE_SIZE must be at least 1")
        return config


_config: t.Optional[BubbleConfig] = None


def get_config() -> BubbleConfig:
    """Return the environment configuration, reading it on first use."""
    global _config
    if _config is None:
        _config = BubbleConfig.from_env()
    return _config


def reset_config() -> None:
    """Forget the cached configuration (tests change the environment)."""
    global _config
    _config = None
