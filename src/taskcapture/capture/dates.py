"""Date, time and recurrence extraction from capture text.

Extraction is an ordered tuple of rules folded over a parse state. Each rule
owns one field (recurrence, date or time) and is skipped once that field is
set, so earlier rules take precedence over later ones. A matching rule emits
its value and strips every occurrence of its phrase from the working text
before the next rule runs.

Rule order:
1. Recurrence: daily, weekdays, every <weekday> (also sets the date)
2. Day after tomorrow (before "tomorrow", which it contains)
3. Today, tomorrow
4. Explicit weekday ("on Monday", "в пятницу") - never today, +7 instead
5. Day offsets: in a day, in N days, in a week
6. Time: HH:MM, "в N часов", N o'clock, morning / afternoon / evening; a
   number after "через" or "in" is a duration and never a clock time

Russian and English phrases are recognized. All regex operations use the
`regex` library with a timeout; a timed-out rule is treated as not matching.

Usage:
    from taskcapture.capture.dates import extract_datetime

    result = extract_datetime("Встреча завтра в 10:00", timezone="Europe/Moscow")
    result.scheduled_date   # "2026-02-11"
    result.scheduled_time   # "10:00"
    result.deadline         # epoch milliseconds
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, timedelta
from functools import reduce
from typing import Literal
from zoneinfo import ZoneInfo

import regex

from taskcapture.core.logging import get_logger

logger = get_logger(__name__)

REGEX_TIMEOUT = 1.0

RecurrenceRule = Literal["daily", "weekdays", "weekly"]
Confidence = Literal["high", "medium", "low", "none"]
RuleField = Literal["recurrence", "date", "time"]

RECURRENCE_RULES: tuple[RecurrenceRule, ...] = ("daily", "weekdays", "weekly")

# Weekday names (Russian accusative forms, English) -> date.weekday() index
WEEKDAYS: dict[str, int] = {
    "понедельник": 0,
    "вторник": 1,
    "среду": 2,
    "четверг": 3,
    "пятницу": 4,
    "субботу": 5,
    "воскресенье": 6,
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

_WEEKDAY_ALTERNATION = "|".join(WEEKDAYS)

# A number after these words is a duration ("через 1:30"), not a clock time
_DURATION_LEAD = r"\b(?:через|in)\s+"

_FLAGS = regex.IGNORECASE


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DateParseResult:
    """Date/time information extracted from a piece of text.

    Attributes:
        scheduled_date: Date as YYYY-MM-DD, or None
        scheduled_time: Time as 24-hour HH:MM, or None
        deadline: Epoch milliseconds of date+time in the caller's zone; only
            set when both scheduled_date and scheduled_time are set
        recurrence_rule: 'daily', 'weekdays', 'weekly', or None
        stripped_content: Text with every recognized phrase removed
        confidence: 'high' (date+time), 'medium' (date), 'low' (time only),
            'none' (nothing recognized)
    """

    scheduled_date: str | None
    scheduled_time: str | None
    deadline: int | None
    recurrence_rule: RecurrenceRule | None
    stripped_content: str
    confidence: Confidence


@dataclass(frozen=True, slots=True)
class _ParseState:
    """Working state threaded through the rule fold."""

    text: str
    reference: date
    recurrence: RecurrenceRule | None = None
    scheduled: date | None = None
    time: tuple[int, int] | None = None
    stripped_any: bool = False

    def has(self, rule_field: RuleField) -> bool:
        if rule_field == "recurrence":
            return self.recurrence is not None
        if rule_field == "date":
            return self.scheduled is not None
        return self.time is not None


@dataclass(frozen=True, slots=True)
class Emission:
    """Field values produced by one matching rule (None means 'not set')."""

    recurrence: RecurrenceRule | None = None
    scheduled: date | None = None
    time: tuple[int, int] | None = None


@dataclass(frozen=True, slots=True)
class ExtractorRule:
    """One step of the extraction pipeline.

    Attributes:
        name: Rule name (used in logs and tests)
        field: Field this rule owns; the rule is skipped once it is set
        pattern: Phrase pattern; every occurrence is stripped on a match
        resolve: Turns the first match and the reference day into an
            Emission, or None when the phrase is recognized but invalid
            (it is still stripped)
    """

    name: str
    field: RuleField
    pattern: regex.Pattern
    resolve: Callable[[regex.Match, date], Emission | None]

    def apply(self, state: _ParseState) -> _ParseState:
        """Run this rule against the current state."""
        if state.has(self.field):
            return state

        try:
            match = self.pattern.search(state.text, timeout=REGEX_TIMEOUT)
            if match is None:
                return state
            stripped = self.pattern.sub(" ", state.text, timeout=REGEX_TIMEOUT)
        except TimeoutError:
            logger.warning("date_rule_timeout", rule=self.name)
            return state

        emission = self.resolve(match, state.reference)
        state = replace(state, text=stripped, stripped_any=True)
        if emission is None:
            return state

        return replace(
            state,
            recurrence=emission.recurrence or state.recurrence,
            scheduled=emission.scheduled or state.scheduled,
            time=emission.time or state.time,
        )


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------


def format_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.isoformat()


def format_time(hours: int, minutes: int) -> str:
    """Format hours and minutes as HH:MM."""
    return f"{hours:02d}:{minutes:02d}"


def next_weekday(weekday: int, reference: date) -> date:
    """Next occurrence of a weekday strictly after the reference day.

    If the reference day already is that weekday, the result is one week
    later, never the reference day itself.

    Args:
        weekday: Target weekday (0 = Monday ... 6 = Sunday)
        reference: Day to count from
    """
    days_ahead = (weekday - reference.weekday()) % 7
    return reference + timedelta(days=days_ahead or 7)


def reference_day(now: datetime | None, timezone: str) -> date:
    """Calendar day of `now` in the given zone (naive datetimes are UTC)."""
    instant = now or datetime.now(UTC)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(ZoneInfo(timezone)).date()


def wall_clock_to_epoch_ms(scheduled_date: str, scheduled_time: str, timezone: str = "UTC") -> int:
    """Convert a wall-clock date and time in a zone to epoch milliseconds.

    The wall-clock value is first read as if it were UTC, rendered through
    the zone, and the measured drift between the two wall clocks is then
    subtracted. Around DST transitions this resolves to the offset in
    effect at the guessed instant.

    Args:
        scheduled_date: Date as YYYY-MM-DD
        scheduled_time: Time as HH:MM
        timezone: IANA timezone name

    Returns:
        Epoch milliseconds
    """
    year, month, day = (int(part) for part in scheduled_date.split("-"))
    hours, minutes = (int(part) for part in scheduled_time.split(":"))

    guess = datetime(year, month, day, hours, minutes, tzinfo=UTC)
    rendered = guess.astimezone(ZoneInfo(timezone)).replace(tzinfo=UTC)
    drift = rendered - guess
    return int((guess - drift).timestamp() * 1000)


# ---------------------------------------------------------------------------
# Rule resolvers
# ---------------------------------------------------------------------------


def _fixed_recurrence(rule: RecurrenceRule) -> Callable[[regex.Match, date], Emission]:
    return lambda match, ref: Emission(recurrence=rule)


def _weekly(match: regex.Match, ref: date) -> Emission:
    weekday = WEEKDAYS[match.group("day").lower()]
    return Emission(recurrence="weekly", scheduled=next_weekday(weekday, ref))


def _offset(days: int) -> Callable[[regex.Match, date], Emission]:
    return lambda match, ref: Emission(scheduled=ref + timedelta(days=days))


def _weekday(match: regex.Match, ref: date) -> Emission:
    return Emission(scheduled=next_weekday(WEEKDAYS[match.group("day").lower()], ref))


def _n_days(match: regex.Match, ref: date) -> Emission:
    return Emission(scheduled=ref + timedelta(days=int(match.group("n"))))


def _clock_time(match: regex.Match, ref: date) -> Emission | None:
    hours, minutes = int(match.group("h")), int(match.group("m"))
    if hours > 23 or minutes > 59:
        return None
    return Emission(time=(hours, minutes))


def _hours(match: regex.Match, ref: date) -> Emission | None:
    hours = int(match.group("h"))
    if hours > 23:
        return None
    return Emission(time=(hours, 0))


def _daypart(hours: int) -> Callable[[regex.Match, date], Emission]:
    return lambda match, ref: Emission(time=(hours, 0))


def _rule(
    name: str,
    rule_field: RuleField,
    pattern: str,
    resolve: Callable[[regex.Match, date], Emission | None],
) -> ExtractorRule:
    return ExtractorRule(name, rule_field, regex.compile(pattern, _FLAGS), resolve)


# Order is the precedence contract; see module docstring
EXTRACTOR_RULES: tuple[ExtractorRule, ...] = (
    _rule(
        "daily",
        "recurrence",
        r"\b(?:каждый\s+день|every\s+day|daily)\b",
        _fixed_recurrence("daily"),
    ),
    _rule(
        "weekdays",
        "recurrence",
        r"\b(?:по\s+будням|on\s+weekdays|every\s+weekday)\b",
        _fixed_recurrence("weekdays"),
    ),
    _rule(
        "weekly",
        "recurrence",
        rf"\b(?:каждый|каждую|каждое|every)\s+(?P<day>{_WEEKDAY_ALTERNATION})\b",
        _weekly,
    ),
    _rule(
        "day_after_tomorrow",
        "date",
        r"\b(?:послезавтра|(?:the\s+)?day\s+after\s+tomorrow)\b",
        _offset(2),
    ),
    _rule("today", "date", r"\b(?:сегодня|today)\b", _offset(0)),
    _rule("tomorrow", "date", r"\b(?:завтра|tomorrow)\b", _offset(1)),
    _rule(
        "weekday",
        "date",
        rf"\b(?:в|во|on|next)\s+(?P<day>{_WEEKDAY_ALTERNATION})\b",
        _weekday,
    ),
    _rule("in_one_day", "date", r"\b(?:через\s+день|in\s+a\s+day)\b(?!\s*\d)", _offset(1)),
    _rule(
        "in_n_days",
        "date",
        r"\b(?:через|in)\s+(?P<n>\d{1,3})\s+(?:дней|дня|день|days?)\b",
        _n_days,
    ),
    _rule("in_a_week", "date", r"\b(?:через\s+неделю|in\s+a\s+week)\b", _offset(7)),
    _rule(
        "clock_time",
        "time",
        rf"(?:\b(?:в|at)\s+)?(?<!{_DURATION_LEAD})\b(?P<h>\d{{1,2}}):(?P<m>\d{{2}})\b",
        _clock_time,
    ),
    # "через 2 часа" is a duration, so the Russian form needs "в"
    _rule("hours", "time", r"\b(?:в|at)\s+(?P<h>\d{1,2})\s+час(?:ов|а)?\b", _hours),
    _rule(
        "o_clock",
        "time",
        rf"(?:\bat\s+)?(?<!{_DURATION_LEAD})\b(?P<h>\d{{1,2}})\s+o['’]clock\b",
        _hours,
    ),
    _rule("morning", "time", r"\b(?:утром|in\s+the\s+morning)\b", _daypart(9)),
    _rule(
        "afternoon",
        "time",
        r"\b(?:дн[её]м|в\s+обед|at\s+midday|in\s+the\s+afternoon)\b",
        _daypart(14),
    ),
    _rule("evening", "time", r"\b(?:вечером|in\s+the\s+evening|tonight)\b", _daypart(19)),
)

_HORIZONTAL_WS = regex.compile(r"[ \t]+")


def _tidy(text: str) -> str:
    """Collapse the gaps left by stripped phrases, keeping line breaks."""
    lines = (
        _HORIZONTAL_WS.sub(" ", line, timeout=REGEX_TIMEOUT).strip() for line in text.split("\n")
    )
    return "\n".join(lines).strip()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def extract_datetime(
    text: str,
    now: datetime | None = None,
    timezone: str | None = None,
    rules: tuple[ExtractorRule, ...] = EXTRACTOR_RULES,
) -> DateParseResult:
    """Extract date, time and recurrence from text.

    Args:
        text: Capture text (after any folder prefix was stripped)
        now: Reference instant (defaults to the current time; naive values
            are read as UTC)
        timezone: IANA timezone of the user (defaults to UTC)
        rules: Extraction rules in precedence order

    Returns:
        DateParseResult; never raises on unrecognized text
    """
    tz = timezone or "UTC"
    ref = reference_day(now, tz)

    initial = _ParseState(text=text, reference=ref)
    state = reduce(lambda current, rule: rule.apply(current), rules, initial)

    scheduled_date = format_date(state.scheduled) if state.scheduled else None
    scheduled_time = format_time(*state.time) if state.time else None

    confidence: Confidence
    if scheduled_date and scheduled_time:
        confidence = "high"
    elif scheduled_date:
        confidence = "medium"
    elif scheduled_time:
        confidence = "low"
        # A time without a date means today in the user's zone
        scheduled_date = format_date(ref)
    else:
        confidence = "none"

    deadline = None
    if scheduled_date and scheduled_time:
        deadline = wall_clock_to_epoch_ms(scheduled_date, scheduled_time, tz)

    stripped = _tidy(state.text) if state.stripped_any else text.strip()

    return DateParseResult(
        scheduled_date=scheduled_date,
        scheduled_time=scheduled_time,
        deadline=deadline,
        recurrence_rule=state.recurrence,
        stripped_content=stripped,
        confidence=confidence,
    )
