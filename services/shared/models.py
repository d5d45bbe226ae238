"""
Shared Pydantic models for REST API serialization.

This module contains Pydantic equivalents of the store's dataclasses plus the
request and response bodies of the BubbleLife service. Entity models accept
the dataclass instances directly (``from_attributes``).
"""
from __future__ import annotations

import typing as t
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bubble_server.models import ItemType


class EntityModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class Note(EntityModel):
    """A note as returned by the API."""
    id: UUID
    title: str
    content: str = ""
    created_at: datetime
    is_favorite: bool = False


class Reminder(EntityModel):
    """A reminder as returned by the API."""
    id: UUID
    title: str
    time: datetime
    is_repeating: bool = False
    is_completed: bool = False
    is_due: bool = False


class Event(EntityModel):
    """A calendar event as returned by the API."""
    id: UUID
    title: str
    date: datetime


class Settings(EntityModel):
    animations_enabled: bool = True
    notifications_enabled: bool = True


class TodayItem(EntityModel):
    id: UUID
    type: ItemType
    title: str
    time: datetime


class TodaySummary(EntityModel):
    event_count: int
    reminder_count: int
    completed_count: int
    daily_goal: int


class ReminderGroup(BaseModel):
    """Reminders sharing a calendar day."""
    day: date
    reminders: list[Reminder] = Field(default_factory=list)


class PieSegment(EntityModel):
    label: str
    value: int
    start_angle: float
    end_angle: float
    label_position: tuple[float, float]


class _TitledRequest(BaseModel):
    title: str

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        """Titles are required; surrounding whitespace is dropped."""
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v


# Request/Response Models for API endpoints
class CreateNoteRequest(_TitledRequest):
    """Request model for creating a note."""
    content: str = ""


class CreateReminderRequest(_TitledRequest):
    """Request model for creating a reminder."""
    time: datetime
    is_repeating: bool = False


class CreateEventRequest(_TitledRequest):
    """Request model for creating a calendar event."""
    date: datetime


class SnoozeRequest(BaseModel):
    """Request model for snoozing a reminder."""
    minutes: int = Field(default=30, gt=0)


class UpdateSettingsRequest(BaseModel):
    """Partial settings update; omitted fields keep their value."""
    model_config = ConfigDict(extra="forbid")

    animations_enabled: t.Optional[bool] = None
    notifications_enabled: t.Optional[bool] = None


class TodayResponse(BaseModel):
    """Response model for the Today screen."""
    summary: TodaySummary
    items: list[TodayItem]


class CalendarMonthResponse(BaseModel):
    """Response model for one month of the calendar grid."""
    reference: date
    weekdays: list[str]
    weeks: list[list[date]]
    events: list[Event]


class StatsResponse(BaseModel):
    """Response model for the stats screen."""
    segments: list[PieSegment]
    total_completed: int


class PersistenceErrorInfo(BaseModel):
    key: str
    message: str


class ToggleResponse(BaseModel):
    id: UUID
    value: bool
