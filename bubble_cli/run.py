# -*- coding: utf-8 -*-
"""Console front end for BubbleLife: each screen of the app as a command."""
import asyncio
import typing as t
from datetime import date, datetime
from functools import wraps
from pathlib import Path
from uuid import UUID

import click
from rich.console import Console
from rich.padding import Padding
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from bubble_server import views
from bubble_server.config import BubbleConfig, get_config
from bubble_server.models import Event, Note, Reminder, SortOption
from bubble_server.store import BubbleStore

console = Console()


def format_datetime_human(moment: datetime) -> str:
    """Timestamp as MM/DD HH:MM."""
    return moment.strftime("%m/%d %H:%M")


def truncate_title(title: str, max_length: int = 45) -> str:
    """Truncate title to max_length characters, adding ellipsis if needed."""
    if len(title) <= max_length:
        return title
    return title[:max_length-3] + "..."


def fail(message: str) -> t.NoReturn:
    console.print(f"[red]Error:[/red] {message}")
    raise SystemExit(1)


def parse_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        fail(f"'{value}' is not a valid id.")


def require_title(title: str) -> str:
    title = title.strip()
    if not title:
        fail("Title must not be empty.")
    return title


def with_store(func: t.Callable) -> t.Callable:
    """Open the configured store around a command and flush it afterwards."""

    @wraps(func)
    @click.pass_obj
    def wrapper(config: BubbleConfig, *args, **kwargs):
        async def _run():
            async with BubbleStore.open(
                config.data_path,
                debounce_seconds=config.save_debounce_seconds,
                queue_size=config.writer_queue_size,
            ) as store:
                func(store, *args, **kwargs)
                await store.flush()
                for error in store.persistence_errors:
                    console.print(f"[yellow]Warning:[/yellow] {error}")

        asyncio.run(_run())

    return wrapper


ITEM_ICONS = {"note": "📝", "reminder": "🔔", "event": "📅"}


def create_today_table(items: list) -> Table:
    table = Table(title="🫧 Today", show_header=True, header_style="bold magenta")
    table.add_column("", style="cyan", width=3)
    table.add_column("Title", style="white")
    table.add_column("Time", style="yellow")
    for item in items:
        table.add_row(ITEM_ICONS[item.type.value], truncate_title(item.title), format_datetime_human(item.time))
    return table


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--data",
    "data_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Preference database to use (defaults to BUBBLE_DATA_PATH).",
)
@click.pass_context
def main(ctx: click.Context, data_path: t.Optional[Path]) -> None:
    """BubbleLife: notes, reminders and events."""
    try:
        config = get_config()
    except ValueError as e:
        fail(str(e))
    if data_path is not None:
        config = BubbleConfig(
            data_path=data_path,
            save_debounce_seconds=config.save_debounce_seconds,
            writer_queue_size=config.writer_queue_size,
            first_weekday=config.first_weekday,
            service_host=config.service_host,
            service_port=config.service_port,
        )
    ctx.obj = config


# ---- Today ----


@main.command()
@with_store
def today(store: BubbleStore) -> None:
    """Show today's notes, reminders and events."""
    now = datetime.now()
    summary = views.today_summary(store.reminders, store.events, now)
    items = views.today_items(store.notes, store.reminders, store.events, now)

    header = Text()
    header.append(f"{now:%A, %B %-d %Y}\n", style="bold")
    header.append(f"You have {summary.event_count} events and {summary.reminder_count} reminders today\n")
    header.append(f"{summary.completed_count}/{summary.daily_goal}", style="bold green")
    header.append(" tasks done today")
    console.print(Panel(header, border_style="magenta"))

    if items:
        console.print(create_today_table(items))
    else:
        console.print("[dim]Nothing here yet. Add a note, reminder or event.[/dim]")


# ---- Notes ----


@main.command()
@click.option(
    "--sort",
    type=click.Choice([o.value for o in SortOption]),
    default=SortOption.NEWEST.value,
    show_default=True,
)
@click.option("--search", default="", help="Only notes whose title contains this text.")
@click.option("--columns", default=2, show_default=True, type=click.IntRange(1, 6))
@with_store
def notes(store: BubbleStore, sort: str, search: str, columns: int) -> None:
    """Show notes as a staggered grid of cards."""
    selected = views.filtered_notes(store.notes, SortOption(sort), search)
    if not selected:
        console.print("[dim]No notes found.[/dim]")
        return

    grid = Table.grid(padding=(0, 2))
    for _ in range(columns):
        grid.add_column()
    for row in views.staggered_grid(selected, columns):
        cards = []
        for cell in row:
            if cell.item is None:
                cards.append("")
                continue
            note = cell.item
            star = "★ " if note.is_favorite else ""
            body = Text(truncate_title(note.content or "", 60), style="white")
            card = Panel(
                body,
                title=f"{star}{truncate_title(note.title, 30)}",
                subtitle=f"{str(note.id)[:8]} · {format_datetime_human(note.created_at)}",
                border_style="magenta" if note.is_favorite else "cyan",
            )
            # Odd columns sit a line lower
            cards.append(Padding(card, (1, 0, 0, 0)) if cell.offset else card)
        grid.add_row(*cards)
    console.print(grid)


@main.command("add-note")
@click.argument("title")
@click.option("--content", default="", help="Body text.")
@with_store
def add_note(store: BubbleStore, title: str, content: str) -> None:
    """Add a note."""
    note = store.add_note(Note.create(require_title(title), content))
    console.print(f"   ✓ Note created: {note.title} [dim]({note.id})[/dim]")


def _resolve(prefix: str, entities: t.Iterable[t.Any], kind: str) -> UUID:
    """Accept a full id or an unambiguous prefix of one."""
    matches = [e.id for e in entities if str(e.id).startswith(prefix.lower())]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        return parse_id(prefix) if len(prefix) == 36 else fail(f"No {kind} matches '{prefix}'.")
    fail(f"'{prefix}' matches several {kind}s; give more characters.")


@main.command()
@click.argument("note_id")
@with_store
def favorite(store: BubbleStore, note_id: str) -> None:
    """Star or unstar a note."""
    nid = _resolve(note_id, store.notes, "note")
    if not store.toggle_favorite(nid):
        fail(f"Note not found: {nid}")
    note = store.get_note(nid)
    console.print(f"   {'★' if note.is_favorite else '☆'} {note.title}")


# ---- Reminders ----


@main.command()
@with_store
def reminders(store: BubbleStore) -> None:
    """Show reminders grouped by day."""
    groups = views.grouped_reminders(store.reminders)
    if not groups:
        console.print("[dim]No reminders yet.[/dim]")
        return

    now = datetime.now()
    table = Table(title="🔔 Reminders", show_header=True, header_style="bold magenta")
    table.add_column("", width=3)
    table.add_column("Id", style="dim")
    table.add_column("Title", style="white")
    table.add_column("Time", style="yellow")
    table.add_column("Repeats", justify="center")
    for group in groups:
        table.add_section()
        table.add_row("", "", f"[bold cyan]{group.day:%A, %B %-d}[/bold cyan]", "", "")
        for reminder in group.reminders:
            if reminder.is_completed:
                mark, style = "✔", "dim strike"
            elif views.is_due(reminder, now):
                mark, style = "⏰", "bold red"
            else:
                mark, style = "○", "white"
            table.add_row(
                mark,
                str(reminder.id)[:8],
                Text(truncate_title(reminder.title), style=style),
                f"{reminder.time:%H:%M}",
                "↻" if reminder.is_repeating else "",
            )
    console.print(table)


@main.command("add-reminder")
@click.argument("title")
@click.argument("time", type=click.DateTime(formats=["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%H:%M"]))
@click.option("--repeat", "is_repeating", is_flag=True, help="Repeat this reminder.")
@with_store
def add_reminder(store: BubbleStore, title: str, time: datetime, is_repeating: bool) -> None:
    """Add a reminder. TIME is 'YYYY-MM-DD HH:MM', or 'HH:MM' for today."""
    if time.year == 1900:
        time = datetime.combine(date.today(), time.time())
    reminder = store.add_reminder(Reminder.create(require_title(title), time, is_repeating))
    console.print(f"   ✓ Reminder created: {reminder.title} at {format_datetime_human(reminder.time)}")


@main.command()
@click.argument("reminder_id")
@with_store
def complete(store: BubbleStore, reminder_id: str) -> None:
    """Mark a reminder done (or open again)."""
    rid = _resolve(reminder_id, store.reminders, "reminder")
    if not store.toggle_reminder_completion(rid):
        fail(f"Reminder not found: {rid}")
    reminder = store.get_reminder(rid)
    state = "done" if reminder.is_completed else "open"
    console.print(f"   ✓ {reminder.title} is {state}")


@main.command()
@click.argument("reminder_id")
@click.option("--minutes", default=30, show_default=True, type=click.IntRange(min=1))
@with_store
def snooze(store: BubbleStore, reminder_id: str, minutes: int) -> None:
    """Push a reminder back."""
    rid = _resolve(reminder_id, store.reminders, "reminder")
    try:
        reminder = store.snooze_reminder(rid, minutes)
    except ValueError as e:
        fail(str(e))
    if reminder is None:
        fail(f"Reminder not found: {rid}")
    console.print(f"   💤 {reminder.title} moved to {format_datetime_human(reminder.time)}")


@main.command("delete-reminder")
@click.argument("reminder_id")
@with_store
def delete_reminder(store: BubbleStore, reminder_id: str) -> None:
    """Delete a reminder."""
    rid = _resolve(reminder_id, store.reminders, "reminder")
    if not store.delete_reminder(rid):
        fail(f"Reminder not found: {rid}")
    console.print("   🫧 Reminder popped")


# ---- Calendar ----


@main.command()
@click.option("--month", "reference", type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m"]), help="Any day of the month to show.")
@click.option("--shift", default=0, help="Months to move forward (or back, if negative).")
@with_store
def calendar(store: BubbleStore, reference: t.Optional[datetime], shift: int) -> None:
    """Show a month grid and the events of the selected day."""
    config = click.get_current_context().obj
    selected = reference.date() if reference else date.today()
    selected = views.shift_month(selected, shift)
    days = views.calendar_days(selected, config.first_weekday)

    table = Table(title=f"📅 {selected:%B %Y}", show_header=True, header_style="bold magenta")
    for name in views.weekday_headers(config.first_weekday):
        table.add_column(name, justify="center")
    busy = {views.local_day(e.date) for e in store.events}
    for week in views.calendar_rows(days):
        cells = []
        for day in week:
            label = str(day.day)
            if day.month != selected.month:
                label = f"[dim]{label}[/dim]"
            elif day == selected:
                label = f"[reverse]{label}[/reverse]"
            if day in busy:
                label += "•"
            cells.append(label)
        table.add_row(*cells)
    console.print(table)

    day_events = views.events_on(store.events, selected)
    if not day_events:
        console.print(f"[dim]No events on {selected:%B %-d}.[/dim]")
        return
    for event in day_events:
        console.print(f"   📅 {event.date:%H:%M}  {event.title}")


@main.command("add-event")
@click.argument("title")
@click.argument("when", type=click.DateTime(formats=["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%Y-%m-%d"]))
@with_store
def add_event(store: BubbleStore, title: str, when: datetime) -> None:
    """Add an event. WHEN is 'YYYY-MM-DD HH:MM' or 'YYYY-MM-DD'."""
    event = store.add_event(Event.create(require_title(title), when))
    console.print(f"   ✓ Event created: {event.title} on {format_datetime_human(event.date)}")


# ---- Stats and settings ----


@main.command()
@with_store
def stats(store: BubbleStore) -> None:
    """Show how notes, reminders and events split up."""
    if not (store.notes or store.reminders or store.events):
        console.print("[dim]Your bubble stats will appear once you add notes, reminders, and events.[/dim]")
        return

    segments = views.pie_segments(len(store.notes), len(store.reminders), len(store.events))
    table = Table(title="📊 Bubble Stats", show_header=True, header_style="bold magenta")
    table.add_column("Kind", style="white")
    table.add_column("Count", justify="right", style="green")
    table.add_column("Share", justify="right", style="yellow")
    table.add_column("Arc", style="dim")
    for segment in segments:
        table.add_row(
            segment.label,
            str(segment.value),
            f"{segment.span / 3.6:.0f}%",
            f"{segment.start_angle:.0f}° → {segment.end_angle:.0f}°",
        )
    console.print(table)
    console.print(f"You popped [bold green]{views.total_completed(store.reminders)}[/bold green] bubbles!")


@main.command()
@click.option("--animations/--no-animations", default=None, help="Turn animations on or off.")
@click.option("--notifications/--no-notifications", default=None, help="Turn notifications on or off.")
@with_store
def settings(store: BubbleStore, animations: t.Optional[bool], notifications: t.Optional[bool]) -> None:
    """Show or change settings."""
    changes = {}
    if animations is not None:
        changes["animations_enabled"] = animations
    if notifications is not None:
        changes["notifications_enabled"] = notifications
    current = store.update_settings(**changes)

    stats_text = Text()
    stats_text.append("Animations: ", style="white")
    stats_text.append("on" if current.animations_enabled else "off", style="bold green")
    stats_text.append("\n")
    stats_text.append("Notifications: ", style="white")
    stats_text.append("on" if current.notifications_enabled else "off", style="bold green")
    console.print(Panel(stats_text, title="⚙️ Settings", border_style="green"))


if __name__ == "__main__":
    main()
