# -*- coding: utf-8 -*-
"""
MCP tool server over a BubbleLife store.

The tools live on BubbleTools so they can be bound to an explicitly
constructed store; create_server() registers them on a FastMCP instance.
IDs travel as strings and entities as plain dicts.
"""
from __future__ import annotations

import asyncio
import typing as t
from dataclasses import asdict
from datetime import date, datetime
from uuid import UUID

from fastmcp import FastMCP

from bubble_server import views
from bubble_server.config import get_config
from bubble_server.models import Event, Note, Reminder, SortOption
from bubble_server.store import BubbleStore


def _parse_id(value: str) -> UUID:
    try:
        return UUID(value)
    except (ValueError, AttributeError, TypeError):
        raise ValueError(f"Invalid id: {value!r}")


def _parse_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        raise ValueError(f"Invalid ISO datetime: {value!r}")


def _require_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise ValueError("Title must not be empty")
    return title


def _to_dict(entity: t.Any) -> dict:
    data = asdict(entity)
    for key, value in data.items():
        if isinstance(value, (datetime, date)):
            data[key] = value.isoformat()
        elif isinstance(value, UUID):
            data[key] = str(value)
        elif hasattr(value, "value"):
            data[key] = value.value
    return data


def _not_found(kind: str, entity_id: UUID) -> dict:
    return {"error": f"{kind} not found", "id": str(entity_id)}


def _format_datetime(moment: datetime) -> str:
    """Formats a timestamp concisely, e.g. 'Mon 1/15 2:30 PM'."""
    return moment.strftime("%a %-m/%-d %-I:%M %p")


class BubbleTools:
    """Tool implementations bound to one store."""

    def __init__(self, store: BubbleStore) -> None:
        self.store = store

    # ---- creation ----

    def add_note(self, title: str, content: str = "") -> dict:
        """Creates a note.

        :param title: Title of the note (required).
        :param content: Body text of the note.
        :return: The created note.
        """
        note = self.store.add_note(Note.create(_require_title(title), content))
        return _to_dict(note)

    def add_reminder(self, title: str, time: str, is_repeating: bool = False) -> dict:
        """Creates a reminder.

        :param title: Title of the reminder (required).
        :param time: When the reminder is due, in ISO format.
        :param is_repeating: Whether the reminder repeats.
        :return: The created reminder.
        """
        reminder = self.store.add_reminder(
            Reminder.create(_require_title(title), _parse_datetime(time), is_repeating)
        )
        return _to_dict(reminder)

    def add_event(self, title: str, date: str) -> dict:
        """Creates a calendar event.

        :param title: Title of the event (required).
        :param date: Date and time of the event, in ISO format.
        :return: The created event.
        """
        event = self.store.add_event(Event.create(_require_title(title), _parse_datetime(date)))
        return _to_dict(event)

    # ---- id-keyed mutations ----

    def toggle_reminder_completion(self, reminder_id: str) -> dict:
        """Marks a reminder done, or open again if it was done."""
        rid = _parse_id(reminder_id)
        if not self.store.toggle_reminder_completion(rid):
            return _not_found("reminder", rid)
        return _to_dict(self.store.get_reminder(rid))

    def snooze_reminder(self, reminder_id: str, minutes: int = 30) -> dict:
        """Pushes a reminder back by a number of minutes (30 by default)."""
        rid = _parse_id(reminder_id)
        reminder = self.store.snooze_reminder(rid, minutes)
        if reminder is None:
            return _not_found("reminder", rid)
        return _to_dict(reminder)

    def delete_reminder(self, reminder_id: str) -> dict:
        """Deletes a reminder."""
        rid = _parse_id(reminder_id)
        if not self.store.delete_reminder(rid):
            return _not_found("reminder", rid)
        return {"deleted": str(rid)}

    def toggle_favorite(self, note_id: str) -> dict:
        """Stars or unstars a note."""
        nid = _parse_id(note_id)
        if not self.store.toggle_favorite(nid):
            return _not_found("note", nid)
        return _to_dict(self.store.get_note(nid))

    def update_settings(
        self,
        animations_enabled: t.Optional[bool] = None,
        notifications_enabled: t.Optional[bool] = None,
    ) -> dict:
        """Changes settings; omitted values are kept."""
        changes = {
            key: value
            for key, value in {
                "animations_enabled": animations_enabled,
                "notifications_enabled": notifications_enabled,
            }.items()
            if value is not None
        }
        return asdict(self.store.update_settings(**changes))

    # ---- listing ----

    def list_notes(self, sort: str = "newest", search: str = "") -> list[dict]:
        """Lists notes.

        :param sort: One of 'newest', 'oldest', 'favorites'.
        :param search: Case-insensitive text the title must contain.
        """
        return [_to_dict(n) for n in views.filtered_notes(self.store.notes, SortOption(sort), search)]

    def list_reminders(self) -> list[dict]:
        """Lists all reminders in insertion order."""
        return [_to_dict(r) for r in self.store.reminders]

    def list_events(self, on: str = "") -> list[dict]:
        """Lists events, or only those on the given ISO date."""
        if on:
            day = _parse_datetime(on).date()
            return [_to_dict(e) for e in views.events_on(self.store.events, day)]
        return [_to_dict(e) for e in self.store.events]

    def get_settings(self) -> dict:
        return asdict(self.store.settings)

    # ---- derived views ----

    def today(self) -> dict:
        """Today's items (every note, open reminders due today, today's events) and counters."""
        now = datetime.now()
        summary = views.today_summary(self.store.reminders, self.store.events, now)
        items = views.today_items(self.store.notes, self.store.reminders, self.store.events, now)
        return {"summary": asdict(summary), "items": [_to_dict(item) for item in items]}

    def calendar_month(self, reference: str = "") -> dict:
        """Month grid for the ISO date given (today by default), split into weeks."""
        day = _parse_datetime(reference).date() if reference else date.today()
        first_weekday = get_config().first_weekday
        days = views.calendar_days(day, first_weekday)
        return {
            "reference": day.isoformat(),
            "weekdays": views.weekday_headers(first_weekday),
            "weeks": [[d.isoformat() for d in week] for week in views.calendar_rows(days)],
            "events": [_to_dict(e) for e in views.events_on(self.store.events, day)],
        }

    def reminder_groups(self) -> list[dict]:
        """Reminders grouped by day, each group ascending by time."""
        return [
            {"day": group.day.isoformat(), "reminders": [_to_dict(r) for r in group.reminders]}
            for group in views.grouped_reminders(self.store.reminders)
        ]

    def stats(self) -> dict:
        """Pie-chart segments (with label points on a unit-radius chart) plus completed reminders."""
        segments = views.pie_segments(len(self.store.notes), len(self.store.reminders), len(self.store.events))
        return {
            "segments": [
                {**asdict(s), "label_position": list(views.segment_label_position(s, views.LABEL_RADIUS))}
                for s in segments
            ],
            "total_completed": views.total_completed(self.store.reminders),
        }

    # ---- formatted views ----

    def show_today(self) -> str:
        """Displays today's items as a plain-text table."""
        now = datetime.now()
        summary = views.today_summary(self.store.reminders, self.store.events, now)
        items = views.today_items(self.store.notes, self.store.reminders, self.store.events, now)

        lines = []
        lines.append("🫧 TODAY")
        lines.append(
            f"You have {summary.event_count} events and {summary.reminder_count} reminders today "
            f"({summary.completed_count}/{summary.daily_goal} done)"
        )
        lines.append("=" * 80)
        if not items:
            lines.append("Nothing planned for today.")
        for item in items:
            title = item.title[:44] if len(item.title) > 44 else item.title
            lines.append(f"{item.type.value:<10} {title:<45} {_format_datetime(item.time):<18}")
        lines.append("=" * 80)
        return "\n".join(lines)

    def show_reminders(self) -> str:
        """Displays reminders grouped by day as a plain-text table."""
        groups = views.grouped_reminders(self.store.reminders)
        if not groups:
            return "🔔 No reminders found."

        now = datetime.now()
        lines = ["🔔 REMINDERS", "=" * 80]
        for group in groups:
            lines.append(group.day.strftime("%A, %B %-d %Y"))
            lines.append("-" * 80)
            for reminder in group.reminders:
                mark = "x" if reminder.is_completed else ("!" if views.is_due(reminder, now) else " ")
                title = reminder.title[:49] if len(reminder.title) > 49 else reminder.title
                lines.append(f"[{mark}] {title:<50} {reminder.time.strftime('%-I:%M %p'):<10}")
        lines.append("=" * 80)
        lines.append(f"Total: {len(self.store.reminders)} reminder(s)")
        return "\n".join(lines)

    def tools(self) -> list[t.Callable]:
        return [
            self.add_note,
            self.add_reminder,
            self.add_event,
            self.toggle_reminder_completion,
            self.snooze_reminder,
            self.delete_reminder,
            self.toggle_favorite,
            self.update_settings,
            self.list_notes,
            self.list_reminders,
            self.list_events,
            self.get_settings,
            self.today,
            self.calendar_month,
            self.reminder_groups,
            self.stats,
            self.show_today,
            self.show_reminders,
        ]


def create_server(store: BubbleStore, name: str = "BubbleLifeServer") -> FastMCP:
    """Create a FastMCP server whose tools operate on ``store``."""
    mcp = FastMCP(name)
    for tool in BubbleTools(store).tools():
        mcp.tool(tool)
    return mcp


async def _serve() -> None:
    config = get_config()
    async with BubbleStore.open(
        config.data_path,
        debounce_seconds=config.save_debounce_seconds,
        queue_size=config.writer_queue_size,
    ) as store:
        await create_server(store).run_async()


if __name__ == "__main__":
    asyncio.run(_serve())
