"""
FastAPI service for the BubbleLife store.

Exposes the store's mutations and derived views as REST endpoints. The store
is created (or handed in) when the app starts and flushed and closed when it
shuts down. Every endpoint is ``async`` so that mutations run on the event
loop thread, next to the store's writer task.
"""
from __future__ import annotations

import typing as t
from contextlib import asynccontextmanager
from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request

from bubble_server import views
from bubble_server.config import BubbleConfig, get_config
from bubble_server.logger import get_logger
from bubble_server.models import Event, Note, Reminder, SortOption
from bubble_server.preferences import SqlitePreferenceStore
from bubble_server.store import BubbleStore
from services.shared.models import (
    CalendarMonthResponse,
    CreateEventRequest,
    CreateNoteRequest,
    CreateReminderRequest,
    Event as PydanticEvent,
    Note as PydanticNote,
    PersistenceErrorInfo,
    PieSegment as PydanticPieSegment,
    Reminder as PydanticReminder,
    ReminderGroup as PydanticReminderGroup,
    Settings as PydanticSettings,
    SnoozeRequest,
    StatsResponse,
    ToggleResponse,
    TodayItem as PydanticTodayItem,
    TodayResponse,
    TodaySummary as PydanticTodaySummary,
    UpdateSettingsRequest,
)

logger = get_logger(__name__)


def create_app(store: t.Optional[BubbleStore] = None, config: t.Optional[BubbleConfig] = None) -> FastAPI:
    """
    Build the service.

    Args:
        store: Store to serve; when omitted one is opened from ``config.data_path``
        config: Runtime configuration, read from the environment by default
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the store on startup and flush it on shutdown."""
        app.state.store = store or BubbleStore(
            SqlitePreferenceStore(config.data_path),
            debounce_seconds=config.save_debounce_seconds,
            queue_size=config.writer_queue_size,
        )
        app.state.config = config
        await app.state.store.start()
        logger.info("BubbleLife service started")
        try:
            yield
        finally:
            await app.state.store.close()
            logger.info("BubbleLife service stopped")

    app = FastAPI(
        title="BubbleLife Service",
        description="REST API for notes, reminders and events",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(_build_router())
    return app


def get_store(request: Request) -> BubbleStore:
    return request.app.state.store


def get_app_config(request: Request) -> BubbleConfig:
    return request.app.state.config


def _reminder_out(reminder: Reminder, now: datetime) -> PydanticReminder:
    return PydanticReminder(
        id=reminder.id,
        title=reminder.title,
        time=reminder.time,
        is_repeating=reminder.is_repeating,
        is_completed=reminder.is_completed,
        is_due=views.is_due(reminder, now),
    )


def _build_router():
    router = APIRouter()

    @router.get("/health")
    async def health_check(store: BubbleStore = Depends(get_store)):
        """Health check endpoint for container orchestration."""
        return {
            "status": "healthy",
            "service": "bubble-service",
            "pending_writes": sorted(store.pending_keys),
        }

    # ---- notes ----

    @router.get("/notes", response_model=list[PydanticNote])
    async def list_notes(
        sort: SortOption = SortOption.NEWEST,
        search: str = "",
        store: BubbleStore = Depends(get_store),
    ) -> list[PydanticNote]:
        """List notes in the requested order, filtered by title."""
        return [PydanticNote.model_validate(n) for n in views.filtered_notes(store.notes, sort, search)]

    @router.post("/notes", response_model=PydanticNote, status_code=201)
    async def create_note(request: CreateNoteRequest, store: BubbleStore = Depends(get_store)) -> PydanticNote:
        note = store.add_note(Note.create(request.title, request.content))
        return PydanticNote.model_validate(note)

    @router.post("/notes/{note_id}/favorite", response_model=ToggleResponse)
    async def toggle_favorite(note_id: UUID, store: BubbleStore = Depends(get_store)) -> ToggleResponse:
        if not store.toggle_favorite(note_id):
            raise HTTPException(status_code=404, detail=f"Note not found: {note_id}")
        return ToggleResponse(id=note_id, value=store.get_note(note_id).is_favorite)

    # ---- reminders ----

    @router.get("/reminders", response_model=list[PydanticReminderGroup])
    async def list_reminders(store: BubbleStore = Depends(get_store)) -> list[PydanticReminderGroup]:
        """List reminders grouped by day."""
        now = datetime.now()
        return [
            PydanticReminderGroup(day=group.day, reminders=[_reminder_out(r, now) for r in group.reminders])
            for group in views.grouped_reminders(store.reminders)
        ]

    @router.post("/reminders", response_model=PydanticReminder, status_code=201)
    async def create_reminder(
        request: CreateReminderRequest, store: BubbleStore = Depends(get_store)
    ) -> PydanticReminder:
        reminder = store.add_reminder(Reminder.create(request.title, request.time, request.is_repeating))
        return _reminder_out(reminder, datetime.now())

    @router.post("/reminders/{reminder_id}/complete", response_model=ToggleResponse)
    async def toggle_completion(reminder_id: UUID, store: BubbleStore = Depends(get_store)) -> ToggleResponse:
        if not store.toggle_reminder_completion(reminder_id):
            raise HTTPException(status_code=404, detail=f"Reminder not found: {reminder_id}")
        return ToggleResponse(id=reminder_id, value=store.get_reminder(reminder_id).is_completed)

    @router.post("/reminders/{reminder_id}/snooze", response_model=PydanticReminder)
    async def snooze_reminder(
        reminder_id: UUID,
        request: t.Optional[SnoozeRequest] = None,
        store: BubbleStore = Depends(get_store),
    ) -> PydanticReminder:
        """Push a reminder back, 30 minutes unless told otherwise."""
        minutes = (request or SnoozeRequest()).minutes
        try:
            reminder = store.snooze_reminder(reminder_id, minutes)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        if reminder is None:
            raise HTTPException(status_code=404, detail=f"Reminder not found: {reminder_id}")
        return _reminder_out(reminder, datetime.now())

    @router.delete("/reminders/{reminder_id}", status_code=204)
    async def delete_reminder(reminder_id: UUID, store: BubbleStore = Depends(get_store)) -> None:
        if not store.delete_reminder(reminder_id):
            raise HTTPException(status_code=404, detail=f"Reminder not found: {reminder_id}")

    # ---- events ----

    @router.get("/events", response_model=list[PydanticEvent])
    async def list_events(on: t.Optional[date] = None, store: BubbleStore = Depends(get_store)) -> list[PydanticEvent]:
        """List events, optionally only those on one day."""
        events = views.events_on(store.events, on) if on else list(store.events)
        return [PydanticEvent.model_validate(e) for e in events]

    @router.post("/events", response_model=PydanticEvent, status_code=201)
    async def create_event(request: CreateEventRequest, store: BubbleStore = Depends(get_store)) -> PydanticEvent:
        event = store.add_event(Event.create(request.title, request.date))
        return PydanticEvent.model_validate(event)

    # ---- settings ----

    @router.get("/settings", response_model=PydanticSettings)
    async def get_settings(store: BubbleStore = Depends(get_store)) -> PydanticSettings:
        return PydanticSettings.model_validate(store.settings)

    @router.patch("/settings", response_model=PydanticSettings)
    async def update_settings(
        request: UpdateSettingsRequest, store: BubbleStore = Depends(get_store)
    ) -> PydanticSettings:
        settings = store.update_settings(**request.model_dump(exclude_none=True))
        return PydanticSettings.model_validate(settings)

    # ---- derived views ----

    @router.get("/views/today", response_model=TodayResponse)
    async def today(store: BubbleStore = Depends(get_store)) -> TodayResponse:
        now = datetime.now()
        return TodayResponse(
            summary=PydanticTodaySummary.model_validate(views.today_summary(store.reminders, store.events, now)),
            items=[
                PydanticTodayItem.model_validate(item)
                for item in views.today_items(store.notes, store.reminders, store.events, now)
            ],
        )

    @router.get("/views/calendar", response_model=CalendarMonthResponse)
    async def calendar_month(
        reference: t.Optional[date] = None,
        store: BubbleStore = Depends(get_store),
        config: BubbleConfig = Depends(get_app_config),
    ) -> CalendarMonthResponse:
        """Month grid around ``reference`` (today by default) with that day's events."""
        reference = reference or date.today()
        days = views.calendar_days(reference, config.first_weekday)
        return CalendarMonthResponse(
            reference=reference,
            weekdays=views.weekday_headers(config.first_weekday),
            weeks=views.calendar_rows(days),
            events=[PydanticEvent.model_validate(e) for e in views.events_on(store.events, reference)],
        )

    @router.get("/views/stats", response_model=StatsResponse)
    async def stats(store: BubbleStore = Depends(get_store)) -> StatsResponse:
        segments = views.pie_segments(len(store.notes), len(store.reminders), len(store.events))
        return StatsResponse(
            segments=[
                PydanticPieSegment(
                    label=s.label,
                    value=s.value,
                    start_angle=s.start_angle,
                    end_angle=s.end_angle,
                    label_position=views.segment_label_position(s, views.LABEL_RADIUS),
                )
                for s in segments
            ],
            total_completed=views.total_completed(store.reminders),
        )

    # ---- persistence ----

    @router.get("/persistence/errors", response_model=list[PersistenceErrorInfo])
    async def persistence_errors(store: BubbleStore = Depends(get_store)) -> list[PersistenceErrorInfo]:
        """Most recent failed writes, oldest first."""
        return [PersistenceErrorInfo(key=e.key, message=str(e)) for e in store.persistence_errors]

    @router.post("/persistence/flush", status_code=204)
    async def flush(store: BubbleStore = Depends(get_store)) -> None:
        await store.flush()

    return router


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(create_app(config=config), host=config.service_host, port=config.service_port)
