"""
JSON encoding of the persisted blobs.

Each key holds ``{"version": 1, "data": <payload>}`` where the payload is the
camelCase array (notes, reminders, events) or object (settings). Blobs written
before versioning hold the bare payload; those are still read, including
timestamps stored as seconds since 2001-01-01 UTC.
"""
from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from uuid import UUID
import typing as t

from pydantic import BaseModel, BeforeValidator, ConfigDict, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from bubble_server.errors import CorruptBlobError
from bubble_server.models import Event, Note, Reminder, Settings

SCHEMA_VERSION = 1

NOTES_KEY = "notes"
REMINDERS_KEY = "reminders"
EVENTS_KEY = "events"
SETTINGS_KEY = "settings"

REFERENCE_DATE = datetime(2001, 1, 1, tzinfo=timezone.utc)


def _legacy_timestamp(value: t.Any) -> t.Any:
    """Numeric timestamps are seconds since the 2001 reference date, as local time."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return (REFERENCE_DATE + timedelta(seconds=value)).astimezone().replace(tzinfo=None)
        except (OverflowError, ValueError):
            # Infinity, NaN or a value past the datetime range
            raise ValueError(f"timestamp {value!r} is out of range")
    return value


Timestamp = t.Annotated[datetime, BeforeValidator(_legacy_timestamp)]


class RecordModel(BaseModel):
    """Persisted shape: camelCase keys, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class NoteRecord(RecordModel):
    id: UUID
    title: str
    content: str = ""
    created_at: Timestamp
    is_favorite: bool = False


class ReminderRecord(RecordModel):
    id: UUID
    title: str
    time: Timestamp
    is_repeating: bool = False
    is_completed: bool = False


class EventRecord(RecordModel):
    id: UUID
    title: str
    date: Timestamp


class SettingsRecord(RecordModel):
    animations_enabled: bool = True
    notifications_enabled: bool = True


_COLLECTIONS: dict[str, tuple[type[RecordModel], type]] = {
    NOTES_KEY: (NoteRecord, Note),
    REMINDERS_KEY: (ReminderRecord, Reminder),
    EVENTS_KEY: (EventRecord, Event),
}

_ADAPTERS = {key: TypeAdapter(list[record]) for key, (record, _) in _COLLECTIONS.items()}


def default_for(key: str) -> t.Any:
    """Empty value a key falls back to when its blob is missing or corrupt."""
    if key == SETTINGS_KEY:
        return Settings()
    if key in _COLLECTIONS:
        return []
    raise KeyError(key)


def encode_payload(key: str, value: t.Any) -> t.Any:
    """Convert entities into the JSON-compatible payload stored under ``key``."""
    if key == SETTINGS_KEY:
        return SettingsRecord(**asdict(value)).model_dump(mode="json", by_alias=True)
    record_cls, _ = _COLLECTIONS[key]
    return [record_cls(**asdict(item)).model_dump(mode="json", by_alias=True) for item in value]


def encode(key: str, value: t.Any) -> str:
    """Serialize a collection (or the settings record) into its versioned blob."""
    return json.dumps({"version": SCHEMA_VERSION, "data": encode_payload(key, value)})


def decode(key: str, text: str) -> t.Any:
    """
    Parse a blob back into entities.

    Args:
        key: Which of the four blobs this is
        text: Stored JSON text, versioned or legacy

    Returns:
        A list of entities, or Settings for the settings key

    Raises:
        CorruptBlobError: If the text is not valid JSON, has an unknown
            version, or does not match the entity shape
    """
    try:
        raw = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise CorruptBlobError(key, f"invalid JSON: {e}")

    if isinstance(raw, dict) and "version" in raw and "data" in raw:
        if raw["version"] != SCHEMA_VERSION:
            raise CorruptBlobError(key, f"unsupported version {raw['version']!r}")
        payload = raw["data"]
    else:
        payload = raw

    try:
        if key == SETTINGS_KEY:
            record = SettingsRecord.model_validate(payload)
            return Settings(**record.model_dump())
        _, entity_cls = _COLLECTIONS[key]
        records = _ADAPTERS[key].validate_python(payload)
    except ValidationError as e:
        raise CorruptBlobError(key, f"{e.error_count()} validation error(s)")

    return [entity_cls(**record.model_dump()) for record in records]
