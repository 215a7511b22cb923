"""Next-occurrence arithmetic for recurring captures.

When a recurring task is completed, the caller reschedules it to the next
occurrence of its rule, keeping the original wall-clock time.

Usage:
    from taskcapture.capture.recurrence import build_next_recurring_schedule

    schedule = build_next_recurring_schedule(
        scheduled_date="2026-02-13",
        scheduled_time="09:00",
        deadline=None,
        recurrence_rule="weekdays",
        timezone="Europe/Moscow",
    )
    schedule.scheduled_date  # "2026-02-16" (Friday -> Monday)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from taskcapture.capture.dates import (
    RECURRENCE_RULES,
    RecurrenceRule,
    format_date,
    reference_day,
    wall_clock_to_epoch_ms,
)


@dataclass(frozen=True, slots=True)
class RecurringSchedule:
    """Next scheduled date (and deadline, when the task has a time)."""

    scheduled_date: str
    deadline: int | None


def is_recurrence_rule(value: object) -> bool:
    """Check whether a value is a supported recurrence rule."""
    return isinstance(value, str) and value in RECURRENCE_RULES


def next_occurrence(base_date: str, recurrence_rule: RecurrenceRule) -> str:
    """Date of the next occurrence after base_date.

    Args:
        base_date: Current occurrence as YYYY-MM-DD
        recurrence_rule: 'daily', 'weekdays' or 'weekly'

    Returns:
        Next occurrence as YYYY-MM-DD. For 'weekdays' this skips Saturday
        and Sunday.
    """
    current = date.fromisoformat(base_date)

    if recurrence_rule == "daily":
        return format_date(current + timedelta(days=1))

    if recurrence_rule == "weekly":
        return format_date(current + timedelta(days=7))

    if recurrence_rule != "weekdays":
        raise ValueError(f"Unknown recurrence rule: {recurrence_rule!r}")

    candidate = current + timedelta(days=1)
    while candidate.weekday() >= 5:
        candidate += timedelta(days=1)
    return format_date(candidate)


def resolve_base_date(
    scheduled_date: str | None,
    deadline: int | None,
    timezone: str | None = None,
    now: datetime | None = None,
) -> str:
    """Pick the date a recurring task is counted from.

    The scheduled date if there is one, otherwise the calendar day of the
    deadline in the user's zone, otherwise today.
    """
    tz = timezone or "UTC"
    if scheduled_date:
        return scheduled_date
    if deadline is not None:
        instant = datetime.fromtimestamp(deadline / 1000, tz=UTC)
        return format_date(instant.astimezone(ZoneInfo(tz)).date())
    return format_date(reference_day(now, tz))


def build_next_recurring_schedule(
    scheduled_date: str | None,
    scheduled_time: str | None,
    deadline: int | None,
    recurrence_rule: RecurrenceRule,
    timezone: str | None = None,
    now: datetime | None = None,
) -> RecurringSchedule:
    """Compute the next schedule of a recurring task.

    Args:
        scheduled_date: Current scheduled date (YYYY-MM-DD) or None
        scheduled_time: Wall-clock time (HH:MM) or None
        deadline: Current deadline in epoch ms or None
        recurrence_rule: The task's recurrence rule
        timezone: IANA timezone of the user (defaults to UTC)
        now: Reference instant used when the task has no date at all

    Returns:
        RecurringSchedule with the next date; the deadline is recomputed at
        the same wall-clock time, or None when the task has no time
    """
    tz = timezone or "UTC"
    base = resolve_base_date(scheduled_date, deadline, tz, now)
    next_date = next_occurrence(base, recurrence_rule)
    next_deadline = (
        wall_clock_to_epoch_ms(next_date, scheduled_time, tz) if scheduled_time else None
    )
    return RecurringSchedule(scheduled_date=next_date, deadline=next_deadline)
