"""
The BubbleLife store: single source of truth for notes, reminders, events and settings.

Mutations are synchronous against memory. Each one notifies the debounced
writer with the key it touched; the writer snapshots and persists that key
later. Construct one store per process and pass it to whatever needs it:

    async with BubbleStore.open(path) as store:
        store.add_note(Note.create("Groceries"))
"""
from __future__ import annotations

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import fields, replace
from datetime import timedelta
from pathlib import Path
from uuid import UUID
import typing as t

from bubble_server import codec
from bubble_server.codec import EVENTS_KEY, NOTES_KEY, REMINDERS_KEY, SETTINGS_KEY
from bubble_server.errors import CorruptBlobError, DuplicateIdError, PersistenceError
from bubble_server.logger import get_logger
from bubble_server.models import Event, Note, Reminder, Settings
from bubble_server.preferences import PreferenceStore, SqlitePreferenceStore
from bubble_server.writer import DebouncedWriter

logger = get_logger(__name__)

ChangeListener = t.Callable[[str], None]
ErrorListener = t.Callable[[PersistenceError], None]

MAX_REMEMBERED_ERRORS = 20


class BubbleStore:
    """In-memory collections with debounced write-through to a preference store."""

    def __init__(
        self,
        preferences: PreferenceStore,
        debounce_seconds: float = 1.0,
        queue_size: int = 64,
    ) -> None:
        self._preferences = preferences
        self._notes: list[Note] = []
        self._reminders: list[Reminder] = []
        self._events: list[Event] = []
        self._settings = Settings()
        self._listeners: list[ChangeListener] = []
        self._error_listeners: list[ErrorListener] = []
        self.persistence_errors: deque[PersistenceError] = deque(maxlen=MAX_REMEMBERED_ERRORS)
        self._writer = DebouncedWriter(self._flush_key, window=debounce_seconds, maxsize=queue_size)
        self._load()

    # ---- lifecycle ----

    @classmethod
    @asynccontextmanager
    async def open(
        cls,
        db_path: Path,
        debounce_seconds: float = 1.0,
        queue_size: int = 64,
    ) -> t.AsyncIterator[BubbleStore]:
        """Open a SQLite-backed store, start its writer and close it on exit."""
        store = cls(SqlitePreferenceStore(db_path), debounce_seconds=debounce_seconds, queue_size=queue_size)
        await store.start()
        try:
            yield store
        finally:
            await store.close()

    async def start(self) -> None:
        """Start the background writer. Must be called from a running event loop."""
        self._writer.start()

    async def flush(self) -> None:
        """Persist every pending change immediately."""
        await self._writer.flush()

    async def close(self) -> None:
        """Flush pending changes, stop the writer and release the preference store."""
        await self._writer.close()
        self._preferences.close()

    async def __aenter__(self) -> BubbleStore:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: t.Any) -> None:
        await self.close()

    @property
    def pending_keys(self) -> set[str]:
        return self._writer.pending

    # ---- loading and persistence ----

    def _load(self) -> None:
        # Each blob is independent: one bad key must not empty the others
        self._notes = self._load_key(NOTES_KEY)
        self._reminders = self._load_key(REMINDERS_KEY)
        self._events = self._load_key(EVENTS_KEY)
        self._settings = self._load_key(SETTINGS_KEY)
        logger.info(
            f"Loaded {len(self._notes)} notes, {len(self._reminders)} reminders, "
            f"{len(self._events)} events"
        )

    def _load_key(self, key: str) -> t.Any:
        try:
            text = self._preferences.get(key)
        except Exception as e:
            logger.warning(f"Could not read '{key}', starting empty: {e}")
            return codec.default_for(key)
        if text is None:
            logger.debug(f"No stored '{key}', starting empty")
            return codec.default_for(key)
        try:
            return codec.decode(key, text)
        except CorruptBlobError as e:
            logger.warning(f"{e}; starting empty")
            return codec.default_for(key)

    def _snapshot(self, key: str) -> t.Any:
        if key == NOTES_KEY:
            return self._notes
        if key == REMINDERS_KEY:
            return self._reminders
        if key == EVENTS_KEY:
            return self._events
        if key == SETTINGS_KEY:
            return self._settings
        raise KeyError(key)

    async def _flush_key(self, key: str) -> None:
        try:
            # Encode on the loop thread so the snapshot is consistent
            payload = codec.encode(key, self._snapshot(key))
            await asyncio.to_thread(self._preferences.set, key, payload)
        except Exception as e:
            self._report(PersistenceError(key, e))

    def _report(self, error: PersistenceError) -> None:
        logger.error(str(error), exc_info=error.cause)
        self.persistence_errors.append(error)
        # Keep the key pending so the next flush retries it
        self._writer.notify(error.key)
        for listener in list(self._error_listeners):
            try:
                listener(error)
            except Exception as e:
                logger.error(f"Persistence error listener failed: {e}", exc_info=True)

    def _changed(self, key: str) -> None:
        self._writer.notify(key)
        for listener in list(self._listeners):
            try:
                listener(key)
            except Exception as e:
                logger.error(f"Change listener failed for '{key}': {e}", exc_info=True)

    # ---- observation ----

    def subscribe(self, listener: ChangeListener) -> t.Callable[[], None]:
        """Call ``listener(key)`` after every mutation. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def on_persistence_error(self, listener: ErrorListener) -> t.Callable[[], None]:
        """Call ``listener(error)`` whenever a write fails. Returns an unsubscribe function."""
        self._error_listeners.append(listener)
        return lambda: self._error_listeners.remove(listener) if listener in self._error_listeners else None

    # ---- read access ----

    @property
    def notes(self) -> tuple[Note, ...]:
        return tuple(self._notes)

    @property
    def reminders(self) -> tuple[Reminder, ...]:
        return tuple(self._reminders)

    @property
    def events(self) -> tuple[Event, ...]:
        return tuple(self._events)

    @property
    def settings(self) -> Settings:
        return replace(self._settings)

    def get_note(self, note_id: UUID) -> t.Optional[Note]:
        return next((n for n in self._notes if n.id == note_id), None)

    def get_reminder(self, reminder_id: UUID) -> t.Optional[Reminder]:
        return next((r for r in self._reminders if r.id == reminder_id), None)

    def get_event(self, event_id: UUID) -> t.Optional[Event]:
        return next((e for e in self._events if e.id == event_id), None)

    # ---- mutations ----

    def add_note(self, note: Note) -> Note:
        """Append a note. The caller is responsible for rejecting blank titles."""
        self._append(NOTES_KEY, self._notes, note)
        return note

    def add_reminder(self, reminder: Reminder) -> Reminder:
        self._append(REMINDERS_KEY, self._reminders, reminder)
        return reminder

    def add_event(self, event: Event) -> Event:
        self._append(EVENTS_KEY, self._events, event)
        return event

    def _append(self, key: str, collection: list, item: t.Any) -> None:
        if any(existing.id == item.id for existing in collection):
            raise DuplicateIdError(key, item.id)
        collection.append(item)
        logger.debug(f"Added {key[:-1]} {item.id}")
        self._changed(key)

    def toggle_reminder_completion(self, reminder_id: UUID) -> bool:
        """Flip ``is_completed``. Returns False when no reminder has that id."""
        reminder = self.get_reminder(reminder_id)
        if reminder is None:
            return False
        reminder.is_completed = not reminder.is_completed
        self._changed(REMINDERS_KEY)
        return True

    def snooze_reminder(self, reminder_id: UUID, minutes: int) -> t.Optional[Reminder]:
        """
        Push a reminder's time forward.

        Args:
            reminder_id: Reminder to snooze
            minutes: Strictly positive offset; repeated snoozes compound

        Returns:
            The updated reminder, or None if no reminder has that id

        Raises:
            ValueError: If minutes is not positive, or moves the time past
                the representable range
        """
        if minutes <= 0:
            raise ValueError(f"Snooze offset must be positive, got {minutes}")
        reminder = self.get_reminder(reminder_id)
        if reminder is None:
            return None
        try:
            moved = reminder.time + timedelta(minutes=minutes)
        except OverflowError:
            raise ValueError("Snooze offset moves the reminder out of range")
        reminder.time = moved
        self._changed(REMINDERS_KEY)
        return reminder

    def delete_reminder(self, reminder_id: UUID) -> bool:
        before = len(self._reminders)
        self._reminders = [r for r in self._reminders if r.id != reminder_id]
        if len(self._reminders) == before:
            return False
        self._changed(REMINDERS_KEY)
        return True

    def toggle_favorite(self, note_id: UUID) -> bool:
        note = self.get_note(note_id)
        if note is None:
            return False
        note.is_favorite = not note.is_favorite
        self._changed(NOTES_KEY)
        return True

    def update_settings(self, **changes: bool) -> Settings:
        """Merge the given fields into the settings record."""
        known = {f.name for f in fields(Settings)}
        unknown = set(changes) - known
        if unknown:
            raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")
        if changes:
            self._settings = replace(self._settings, **changes)
            self._changed(SETTINGS_KEY)
        return self.settings
