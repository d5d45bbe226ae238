"""Tests for the derived views: today, notes grid, calendar, reminders and stats."""
import calendar
import math
from datetime import date, datetime, timedelta

import pytest

from bubble_server import views
from bubble_server.models import Event, ItemType, Note, PieSegment, Reminder, SortOption

NOW = datetime(2025, 6, 10, 8, 0)


def test_today_items_include_notes_and_todays_entries_only() -> None:
    """A note, a 09:00 reminder and a 14:00 event appear; tomorrow's event does not."""
    note = Note.create("Journal", created_at=datetime(2024, 12, 31, 23, 0))
    reminder = Reminder.create("Pills", datetime(2025, 6, 10, 9, 0))
    event = Event.create("Lunch date", datetime(2025, 6, 10, 14, 0))
    tomorrow = Event.create("Flight", datetime(2025, 6, 11, 7, 0))

    items = views.today_items([note], [reminder], [event, tomorrow], now=NOW)

    assert [(i.type, i.title) for i in items] == [
        (ItemType.NOTE, "Journal"),
        (ItemType.REMINDER, "Pills"),
        (ItemType.EVENT, "Lunch date"),
    ]
    assert [i.id for i in items] == [note.id, reminder.id, event.id]


def test_today_items_skip_completed_reminders() -> None:
    done = Reminder.create("Done already", datetime(2025, 6, 10, 7, 0))
    done.is_completed = True
    assert views.today_items([], [done], [], now=NOW) == []


def test_today_summary_counts() -> None:
    open_today = Reminder.create("open", datetime(2025, 6, 10, 18, 0))
    done_today = Reminder.create("done", datetime(2025, 6, 10, 6, 0))
    done_today.is_completed = True
    done_yesterday = Reminder.create("old", datetime(2025, 6, 9, 6, 0))
    done_yesterday.is_completed = True
    events = [Event.create("a", datetime(2025, 6, 10, 12, 0)), Event.create("b", datetime(2025, 6, 12, 12, 0))]

    summary = views.today_summary([open_today, done_today, done_yesterday], events, now=NOW)

    assert summary.event_count == 1
    assert summary.reminder_count == 1
    assert summary.completed_count == 1
    assert summary.daily_goal == views.DAILY_GOAL == 5


def test_favorites_sort_puts_favorites_first() -> None:
    notes = [Note.create(str(i), created_at=NOW - timedelta(days=i)) for i in range(6)]
    for note in notes[1::2]:
        note.is_favorite = True

    ordered = views.filtered_notes(notes, SortOption.FAVORITES)

    flags = [n.is_favorite for n in ordered]
    assert flags == [True, True, True, False, False, False]
    assert {n.id for n in ordered} == {n.id for n in notes}


def test_newest_and_oldest_sorts() -> None:
    old = Note.create("old", created_at=datetime(2025, 1, 1))
    mid = Note.create("mid", created_at=datetime(2025, 3, 1))
    new = Note.create("new", created_at=datetime(2025, 5, 1))

    assert views.filtered_notes([mid, old, new], SortOption.NEWEST) == [new, mid, old]
    assert views.filtered_notes([mid, old, new], "oldest") == [old, mid, new]


def test_search_is_case_insensitive_on_title_only() -> None:
    groceries = Note.create("Groceries", content="nothing about trips")
    trip = Note.create("Road TRIP plans")
    body_only = Note.create("Misc", content="trip")

    found = views.filtered_notes([groceries, trip, body_only], SortOption.OLDEST, search="trip")
    assert found == [trip]
    assert views.filtered_notes([groceries, trip], search="") == views.filtered_notes([groceries, trip])


def test_staggered_grid_pads_and_offsets() -> None:
    rows = views.staggered_grid(["a", "b", "c"], columns=2)

    assert [[cell.item for cell in row] for row in rows] == [["a", "b"], ["c", None]]
    assert [cell.offset for cell in rows[0]] == [False, True]
    assert rows[1][1].row == 1 and rows[1][1].column == 1
    assert views.staggered_grid([], columns=2) == []
    with pytest.raises(ValueError):
        views.staggered_grid(["a"], columns=0)


def test_calendar_days_for_month_starting_midweek() -> None:
    """March 2023 starts on a Wednesday: a Sunday grid leads with Feb 26-28."""
    days = views.calendar_days(date(2023, 3, 15), calendar.SUNDAY)

    assert days[:4] == [date(2023, 2, 26), date(2023, 2, 27), date(2023, 2, 28), date(2023, 3, 1)]
    assert days[-1] == date(2023, 3, 31)
    assert len(days) == 3 + 31

    rows = views.calendar_rows(days)
    assert len(rows) == 5
    assert [len(r) for r in rows] == [7, 7, 7, 7, 6]


def test_calendar_days_respect_first_weekday() -> None:
    monday_grid = views.calendar_days(date(2023, 3, 1), calendar.MONDAY)
    assert monday_grid[:3] == [date(2023, 2, 27), date(2023, 2, 28), date(2023, 3, 1)]

    # January 2023 starts on a Sunday, so a Sunday grid has no leading days
    assert views.calendar_days(date(2023, 1, 20), calendar.SUNDAY)[0] == date(2023, 1, 1)


def test_calendar_days_january_borrows_from_december() -> None:
    # 1 January 2025 is a Wednesday
    days = views.calendar_days(datetime(2025, 1, 5, 12, 0), calendar.SUNDAY)
    assert days[:3] == [date(2024, 12, 29), date(2024, 12, 30), date(2024, 12, 31)]


def test_weekday_headers() -> None:
    assert views.weekday_headers(calendar.SUNDAY)[0] == calendar.day_abbr[calendar.SUNDAY]
    assert views.weekday_headers(calendar.MONDAY)[-1] == calendar.day_abbr[calendar.SUNDAY]


@pytest.mark.parametrize(
    "reference, months, expected",
    [
        (date(2025, 1, 31), 1, date(2025, 2, 28)),
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2025, 1, 15), -1, date(2024, 12, 15)),
        (date(2025, 12, 1), 1, date(2026, 1, 1)),
        (date(2025, 5, 10), 0, date(2025, 5, 10)),
    ],
)
def test_shift_month(reference: date, months: int, expected: date) -> None:
    assert views.shift_month(reference, months) == expected


def test_events_on_day_sorted_by_time() -> None:
    late = Event.create("late", datetime(2025, 6, 10, 20, 0))
    early = Event.create("early", datetime(2025, 6, 10, 9, 0))
    other = Event.create("other", datetime(2025, 6, 11, 9, 0))
    assert views.events_on([late, other, early], date(2025, 6, 10)) == [early, late]


def test_grouped_reminders_by_day() -> None:
    r1 = Reminder.create("second day", datetime(2025, 6, 11, 8, 0))
    r2 = Reminder.create("first day late", datetime(2025, 6, 10, 21, 0))
    r3 = Reminder.create("first day early", datetime(2025, 6, 10, 6, 0))

    groups = views.grouped_reminders([r1, r2, r3])

    assert [g.day for g in groups] == [date(2025, 6, 10), date(2025, 6, 11)]
    assert groups[0].reminders == [r3, r2]
    assert groups[1].reminders == [r1]
    assert views.grouped_reminders([]) == []


def test_is_due() -> None:
    past = Reminder.create("past", NOW - timedelta(minutes=1))
    future = Reminder.create("future", NOW + timedelta(minutes=1))
    finished = Reminder.create("finished", NOW - timedelta(hours=1))
    finished.is_completed = True

    assert views.is_due(past, NOW) is True
    assert views.is_due(future, NOW) is False
    assert views.is_due(finished, NOW) is False


def test_total_completed() -> None:
    reminders = [Reminder.create(str(i), NOW) for i in range(4)]
    reminders[0].is_completed = True
    reminders[3].is_completed = True
    assert views.total_completed(reminders) == 2


def test_pie_segments_cover_the_circle() -> None:
    """Counts 1, 1, 2 give spans of 90, 90 and 180 degrees from 0 to 360."""
    notes, reminders, events = views.pie_segments(1, 1, 2)

    assert (notes.label, notes.start_angle, notes.end_angle) == ("Notes", 0.0, 90.0)
    assert (reminders.label, reminders.start_angle, reminders.end_angle) == ("Reminders", 90.0, 180.0)
    assert (events.label, events.start_angle, events.end_angle) == ("Events", 180.0, 360.0)
    assert [s.span for s in (notes, reminders, events)] == [90.0, 90.0, 180.0]


def test_pie_segments_empty_store_has_zero_spans() -> None:
    segments = views.pie_segments(0, 0, 0)
    assert all(s.start_angle == 0.0 and s.end_angle == 0.0 for s in segments)
    assert [s.value for s in segments] == [0, 0, 0]


def test_segment_label_position_is_at_mid_angle() -> None:
    segment = PieSegment(label="Notes", value=1, start_angle=0.0, end_angle=180.0)
    x, y = views.segment_label_position(segment, radius=2.0, center=(10.0, 10.0))
    assert math.isclose(x, 10.0, abs_tol=1e-9)
    assert math.isclose(y, 12.0)
