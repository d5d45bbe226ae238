"""
Data models for the BubbleLife store.

This module contains the dataclasses used to represent notes, reminders,
events and settings, plus the small value types produced by the derived views.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from uuid import UUID, uuid4
import typing as t


@dataclass
class Note:
    """Represents a free-form note with an optional favorite flag."""
    id: UUID
    title: str
    content: str
    created_at: datetime
    is_favorite: bool = False

    @classmethod
    def create(cls, title: str, content: str = "", created_at: t.Optional[datetime] = None) -> Note:
        """Builds a note with a fresh id, stamped with the current time by default."""
        return cls(
            id=uuid4(),
            title=title,
            content=content,
            created_at=created_at or datetime.now(),
        )


@dataclass
class Reminder:
    """Represents a reminder due at a point in time."""
    id: UUID
    title: str
    time: datetime
    is_repeating: bool = False
    is_completed: bool = False

    @classmethod
    def create(cls, title: str, time: datetime, is_repeating: bool = False) -> Reminder:
        return cls(id=uuid4(), title=title, time=time, is_repeating=is_repeating)


@dataclass
class Event:
    """Represents a calendar event on a given date."""
    id: UUID
    title: str
    date: datetime

    @classmethod
    def create(cls, title: str, date: datetime) -> Event:
        return cls(id=uuid4(), title=title, date=date)


@dataclass
class Settings:
    """Process-wide user preferences."""
    animations_enabled: bool = True
    notifications_enabled: bool = True


class ItemType(str, Enum):
    NOTE = "note"
    REMINDER = "reminder"
    EVENT = "event"


class SortOption(str, Enum):
    """Orderings offered by the notes screen."""
    NEWEST = "newest"
    OLDEST = "oldest"
    FAVORITES = "favorites"


@dataclass(frozen=True)
class TodayItem:
    """One row of the "Today" screen, pointing back at its source entity."""
    id: UUID
    type: ItemType
    title: str
    time: datetime


@dataclass(frozen=True)
class TodaySummary:
    """Header counters of the "Today" screen."""
    event_count: int
    reminder_count: int
    completed_count: int
    daily_goal: int


@dataclass
class ReminderGroup:
    """Reminders falling on the same calendar day, ordered by time."""
    day: date
    reminders: list[Reminder] = field(default_factory=list)


@dataclass(frozen=True)
class PieSegment:
    """A slice of the stats pie chart, angles in degrees."""
    label: str
    value: int
    start_angle: float
    end_angle: float

    @property
    def span(self) -> float:
        return self.end_angle - self.start_angle


@dataclass(frozen=True)
class GridCell:
    """A single cell of the staggered notes grid; empty cells carry no item."""
    item: t.Optional[t.Any]
    row: int
    column: int
    offset: bool
