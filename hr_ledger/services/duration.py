"""
Duration Calculator

Converts a request span into a quota-consuming quantity. Whole-day spans
count inclusive calendar days; partial-day spans count clock minutes between
``start_time`` and ``end_time``. Pure functions, no I/O.

Dates are ``datetime.date`` or canonical ``YYYY-MM-DD`` strings, clock times
are canonical 24-hour ``HH:MM`` strings.

A request's span for settlement purposes is modelled as either a
``SubmittedSpan`` (as filed) or a ``CorrectedSpan`` (rewritten during monthly
detail review). ``effective_span`` decides which one is authoritative.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from hr_ledger.core.config import settings

MIDNIGHT = "00:00"


@dataclass(frozen=True)
class Span:
    start_date: date
    end_date: date
    is_partial_day: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None


@dataclass(frozen=True)
class SubmittedSpan:
    span: Span


@dataclass(frozen=True)
class CorrectedSpan:
    span: Span
    duration: float  # authorized hours
    verified: bool = False


RequestSpan = Union[SubmittedSpan, CorrectedSpan]


def to_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def clock_minutes(value: str) -> int:
    """Minutes since midnight for an ``HH:MM`` string."""
    parts = str(value).strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid clock time '{value}', expected HH:MM")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours < 24 and 0 <= minutes < 60) and (hours, minutes) != (24, 0):
        raise ValueError(f"Invalid clock time '{value}', expected HH:MM")
    return hours * 60 + minutes


def day_count(start, end) -> int:
    """Inclusive number of calendar days between two dates."""
    return abs((to_date(end) - to_date(start)).days) + 1


def partial_minutes(start_time: Optional[str], end_time: Optional[str]) -> Optional[int]:
    """Clock minutes of a partial day, clamped at 0; None when a time is missing."""
    if not start_time or not end_time:
        return None
    return max(0, clock_minutes(end_time) - clock_minutes(start_time))


def duration_hours(span: Span, hours_per_day: Optional[float] = None) -> float:
    hours_per_day = hours_per_day or settings.hours_per_day
    if not span.is_partial_day:
        return float(day_count(span.start_date, span.end_date) * hours_per_day)
    minutes = partial_minutes(span.start_time, span.end_time)
    if minutes is None:
        return float(settings.partial_day_default_hours)
    return round(minutes / 60, 2)


def duration_days(span: Span, hours_per_day: Optional[float] = None) -> float:
    hours_per_day = hours_per_day or settings.hours_per_day
    if not span.is_partial_day:
        return float(day_count(span.start_date, span.end_date))
    minutes = partial_minutes(span.start_time, span.end_time)
    if minutes is None:
        return settings.partial_day_default_hours / hours_per_day
    return round(minutes / (hours_per_day * 60), 3)


def span_of(request) -> Span:
    """The span as submitted on a request-like object."""
    return Span(
        start_date=to_date(request.start_date),
        end_date=to_date(request.end_date),
        is_partial_day=bool(request.is_partial_day),
        start_time=request.start_time,
        end_time=request.end_time,
    )


def effective_span(request) -> RequestSpan:
    if request.actual_duration is None:
        return SubmittedSpan(span_of(request))
    submitted = span_of(request)
    corrected = Span(
        start_date=to_date(request.actual_start_date or submitted.start_date),
        end_date=to_date(request.actual_end_date or submitted.end_date),
        is_partial_day=submitted.is_partial_day,
        start_time=request.actual_start_time or submitted.start_time,
        end_time=request.actual_end_time or submitted.end_time,
    )
    return CorrectedSpan(corrected, float(request.actual_duration), bool(request.is_verified))


def row_hours(start_date, end_date, start_time: Optional[str], end_time: Optional[str]) -> float:
    """
    Auto-calculated hours for a detail-review row.

    ``00:00``-``00:00`` marks a whole-day row (inclusive days x hours per day);
    anything else is the elapsed time between the two timestamps, which may
    span several dates. Clamped at 0, one decimal.
    """
    if not start_date or not end_date:
        return 0.0
    start_time = start_time or MIDNIGHT
    end_time = end_time or MIDNIGHT
    if start_time == MIDNIGHT and end_time == MIDNIGHT:
        hours = day_count(start_date, end_date) * settings.hours_per_day
    else:
        start_minutes = to_date(start_date).toordinal() * 1440 + clock_minutes(start_time)
        end_minutes = to_date(end_date).toordinal() * 1440 + clock_minutes(end_time)
        hours = (end_minutes - start_minutes) / 60
    return max(0.0, round(hours, 1))


def in_month(value, year: int, month: int) -> bool:
    d = to_date(value)
    return d.year == year and d.month == month
