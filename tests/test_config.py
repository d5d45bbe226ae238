"""Tests for environment configuration."""
import calendar
from pathlib import Path

import pytest

from bubble_server.config import BubbleConfig, get_config, reset_config

ENV_VARS = [
    "BUBBLE_DATA_PATH",
    "BUBBLE_SAVE_DEBOUNCE_SECONDS",
    "BUBBLE_WRITER_QUEUE_SIZE",
    "BUBBLE_FIRST_WEEKDAY",
    "BUBBLE_SERVICE_HOST",
    "BUBBLE_SERVICE_PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


def test_defaults() -> None:
    config = BubbleConfig.from_env()
    assert config.data_path.name == "preferences.db"
    assert config.save_debounce_seconds == 1.0
    assert config.writer_queue_size == 64
    assert config.first_weekday == calendar.SUNDAY
    assert (config.service_host, config.service_port) == ("127.0.0.1", 8004)


def test_values_from_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("BUBBLE_DATA_PATH", str(tmp_path / "db.sqlite"))
    monkeypatch.setenv("BUBBLE_SAVE_DEBOUNCE_SECONDS", "0.25")
    monkeypatch.setenv("BUBBLE_WRITER_QUEUE_SIZE", "8")
    monkeypatch.setenv("BUBBLE_FIRST_WEEKDAY", "Monday")
    monkeypatch.setenv("BUBBLE_SERVICE_PORT", "9000")

    config = get_config()
    assert config.data_path == Path(tmp_path / "db.sqlite")
    assert config.save_debounce_seconds == 0.25
    assert config.writer_queue_size == 8
    assert config.first_weekday == calendar.MONDAY
    assert config.service_port == 9000
    assert get_config() is config


@pytest.mark.parametrize(
    "name, value",
    [
        ("BUBBLE_SAVE_DEBOUNCE_SECONDS", "soon"),
        ("BUBBLE_SAVE_DEBOUNCE_SECONDS", "-1"),
        ("BUBBLE_WRITER_QUEUE_SIZE", "0"),
        ("BUBBLE_FIRST_WEEKDAY", "someday"),
        ("BUBBLE_SERVICE_PORT", "eighty"),
    ],
)
def test_invalid_values_name_the_variable(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        BubbleConfig.from_env()
