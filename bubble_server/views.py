"""
Derived views over the store's collections.

Pure functions: they take collections (and a reference time where the
answer depends on "today") and return fresh lists, never touching the store.
"""
from __future__ import annotations

import calendar
import math
from datetime import date, datetime
import typing as t

from bubble_server.models import (
    Event,
    GridCell,
    ItemType,
    Note,
    PieSegment,
    Reminder,
    ReminderGroup,
    SortOption,
    TodayItem,
    TodaySummary,
)

DAILY_GOAL = 5

# Pie labels sit just outside a unit-radius chart
LABEL_RADIUS = 1.2

T = t.TypeVar("T")


def local_day(moment: datetime) -> date:
    """Calendar day of a timestamp in local time."""
    if moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    return moment.date()


def _sort_key(moment: datetime) -> datetime:
    # Aware and naive timestamps may be mixed; compare everything as local naive
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def _today(now: t.Optional[datetime]) -> date:
    return local_day(now or datetime.now())


# ---- Today screen ----


def today_items(
    notes: t.Iterable[Note],
    reminders: t.Iterable[Reminder],
    events: t.Iterable[Event],
    now: t.Optional[datetime] = None,
) -> list[TodayItem]:
    """
    Items shown on the Today screen, ascending by time.

    Every note is included whatever its creation date; reminders only when due
    today and not completed; events only when dated today.
    """
    today = _today(now)
    items = [TodayItem(n.id, ItemType.NOTE, n.title, n.created_at) for n in notes]
    items.extend(
        TodayItem(r.id, ItemType.REMINDER, r.title, r.time)
        for r in reminders
        if local_day(r.time) == today and not r.is_completed
    )
    items.extend(
        TodayItem(e.id, ItemType.EVENT, e.title, e.date)
        for e in events
        if local_day(e.date) == today
    )
    return sorted(items, key=lambda item: _sort_key(item.time))


def completed_today_count(reminders: t.Iterable[Reminder], now: t.Optional[datetime] = None) -> int:
    today = _today(now)
    return sum(1 for r in reminders if local_day(r.time) == today and r.is_completed)


def today_summary(
    reminders: t.Iterable[Reminder],
    events: t.Iterable[Event],
    now: t.Optional[datetime] = None,
) -> TodaySummary:
    """Counts for the Today header: events today, open reminders today, completed today."""
    today = _today(now)
    reminders = list(reminders)
    return TodaySummary(
        event_count=sum(1 for e in events if local_day(e.date) == today),
        reminder_count=sum(1 for r in reminders if local_day(r.time) == today and not r.is_completed),
        completed_count=completed_today_count(reminders, now),
        daily_goal=DAILY_GOAL,
    )


# ---- Notes screen ----


def filtered_notes(
    notes: t.Iterable[Note],
    sort: SortOption = SortOption.NEWEST,
    search: str = "",
) -> list[Note]:
    """Sort notes, then keep those whose title contains ``search`` (case-insensitive)."""
    sort = SortOption(sort)
    if sort is SortOption.NEWEST:
        ordered = sorted(notes, key=lambda n: _sort_key(n.created_at), reverse=True)
    elif sort is SortOption.OLDEST:
        ordered = sorted(notes, key=lambda n: _sort_key(n.created_at))
    else:
        ordered = sorted(notes, key=lambda n: not n.is_favorite)

    if not search:
        return ordered
    needle = search.casefold()
    return [n for n in ordered if needle in n.title.casefold()]


def staggered_grid(items: t.Sequence[T], columns: int = 2) -> list[list[GridCell]]:
    """
    Lay items out row-major in ``columns`` columns.

    The last row is padded with empty cells; cells in odd columns are marked
    as offset, which gives the staggered look of the notes grid.
    """
    if columns < 1:
        raise ValueError("columns must be at least 1")
    rows: list[list[GridCell]] = []
    row_count = (len(items) + columns - 1) // columns
    for row in range(row_count):
        cells = []
        for column in range(columns):
            index = row * columns + column
            item = items[index] if index < len(items) else None
            cells.append(GridCell(item=item, row=row, column=column, offset=column % 2 == 1))
        rows.append(cells)
    return rows


# ---- Calendar screen ----


def calendar_days(reference: date, first_weekday: int = calendar.SUNDAY) -> list[date]:
    """
    Dates of the month grid containing ``reference``.

    The grid starts with trailing days of the previous month so that day 1
    sits in its weekday column, then lists every day of the month. Nothing
    is added after the last day.

    Args:
        reference: Any date (or datetime) inside the month to show
        first_weekday: Weekday of the first column (calendar.MONDAY .. calendar.SUNDAY)
    """
    if isinstance(reference, datetime):
        reference = local_day(reference)
    year, month = reference.year, reference.month
    first = date(year, month, 1)
    offset = (first.weekday() - first_weekday) % 7

    days: list[date] = []
    if offset:
        prev_year, prev_month = (year - 1, 12) if month == 1 else (year, month - 1)
        prev_length = calendar.monthrange(prev_year, prev_month)[1]
        days.extend(date(prev_year, prev_month, d) for d in range(prev_length - offset + 1, prev_length + 1))

    month_length = calendar.monthrange(year, month)[1]
    days.extend(date(year, month, d) for d in range(1, month_length + 1))
    return days


def calendar_rows(days: t.Sequence[date], columns: int = 7) -> list[list[date]]:
    """Chunk grid days into week rows; the last row may be short."""
    return [list(days[i:i + columns]) for i in range(0, len(days), columns)]


def weekday_headers(first_weekday: int = calendar.SUNDAY) -> list[str]:
    return [calendar.day_abbr[(first_weekday + i) % 7] for i in range(7)]


def shift_month(reference: date, months: int) -> date:
    """Move by whole months, clamping the day to the target month's length."""
    index = reference.year * 12 + (reference.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(reference.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def events_on(events: t.Iterable[Event], day: date) -> list[Event]:
    """Events dated on ``day``, ascending by time."""
    return sorted((e for e in events if local_day(e.date) == day), key=lambda e: _sort_key(e.date))


# ---- Reminders screen ----


def grouped_reminders(reminders: t.Iterable[Reminder]) -> list[ReminderGroup]:
    """Group reminders by calendar day; groups and their contents ascend by time."""
    groups: dict[date, ReminderGroup] = {}
    for reminder in sorted(reminders, key=lambda r: _sort_key(r.time)):
        day = local_day(reminder.time)
        groups.setdefault(day, ReminderGroup(day=day)).reminders.append(reminder)
    return [groups[day] for day in sorted(groups)]


def is_due(reminder: Reminder, now: t.Optional[datetime] = None) -> bool:
    """A reminder is due once its time has passed and it is still open."""
    now = now or datetime.now()
    return _sort_key(reminder.time) <= _sort_key(now) and not reminder.is_completed


def total_completed(reminders: t.Iterable[Reminder]) -> int:
    return sum(1 for r in reminders if r.is_completed)


# ---- Stats screen ----


def pie_segments(note_count: int, reminder_count: int, event_count: int) -> list[PieSegment]:
    """
    Slices of the stats pie in notes, reminders, events order, starting at 0 degrees.

    Each span is 360 * count / total. An empty store counts as a total of 1,
    so every span collapses to zero instead of dividing by zero.
    """
    values = [("Notes", note_count), ("Reminders", reminder_count), ("Events", event_count)]
    total = max(note_count + reminder_count + event_count, 1)

    segments = []
    running = 0
    for label, value in values:
        start = 360.0 * running / total
        running += value
        end = 360.0 * running / total
        segments.append(PieSegment(label=label, value=value, start_angle=start, end_angle=end))
    return segments


def segment_label_position(
    segment: PieSegment,
    radius: float,
    center: tuple[float, float] = (0.0, 0.0),
) -> tuple[float, float]:
    """Point at the segment's mid-angle, ``radius`` away from ``center``."""
    mid = math.radians((segment.start_angle + segment.end_angle) / 2)
    return (center[0] + radius * math.cos(mid), center[1] + radius * math.sin(mid))
