"""
Interval Calculator — elapsed days between two resolved steps, and the
difference against the baseline project's same interval.

An interval is "complete" only when both endpoint dates resolved. An
incomplete interval carries no arithmetic: days and delta stay None.
Inverted intervals (to before from) yield negative days, unmodified.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Mapping, Optional, Sequence

from app.services.date_resolver import DateValue, ResolvedDate
from app.services.timeline import COMPARISON_PAIRS, ComparisonPair

_ONE_DAY = timedelta(days=1)


class IntervalStatus:
    COMPLETE   = "complete"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class IntervalResult:
    from_date: Optional[DateValue]
    to_date: Optional[DateValue]
    days: Optional[int]
    delta: Optional[int]   # days − baseline days
    status: str

    @property
    def is_complete(self) -> bool:
        return self.status == IntervalStatus.COMPLETE


def _as_datetime(value: DateValue) -> datetime:
    """Normalize to a naive UTC datetime so date and datetime values mix."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return datetime.combine(value, time.min)


def days_between(from_date: DateValue, to_date: DateValue) -> int:
    """Whole days from `from_date` to `to_date`, floored (may be negative)."""
    return (_as_datetime(to_date) - _as_datetime(from_date)) // _ONE_DAY


def _endpoint(dates: Mapping[int, ResolvedDate], step: int) -> Optional[DateValue]:
    entry = dates.get(step)
    return entry.date if entry is not None else None


def _complete_days(dates: Mapping[int, ResolvedDate], pair: ComparisonPair) -> Optional[int]:
    start = _endpoint(dates, pair.from_step)
    end = _endpoint(dates, pair.to_step)
    if start is None or end is None:
        return None
    return days_between(start, end)


def compute_interval(
    dates: Mapping[int, ResolvedDate],
    pair: ComparisonPair,
    baseline_dates: Optional[Mapping[int, ResolvedDate]] = None,
) -> IntervalResult:
    start = _endpoint(dates, pair.from_step)
    end = _endpoint(dates, pair.to_step)
    if start is None or end is None:
        return IntervalResult(
            from_date=start,
            to_date=end,
            days=None,
            delta=None,
            status=IntervalStatus.INCOMPLETE,
        )

    days = days_between(start, end)
    delta: Optional[int] = None
    if baseline_dates is not None:
        baseline_days = _complete_days(baseline_dates, pair)
        if baseline_days is not None:
            delta = days - baseline_days

    return IntervalResult(
        from_date=start,
        to_date=end,
        days=days,
        delta=delta,
        status=IntervalStatus.COMPLETE,
    )


def compute_intervals(
    dates: Mapping[int, ResolvedDate],
    pairs: Sequence[ComparisonPair] = COMPARISON_PAIRS,
    baseline_dates: Optional[Mapping[int, ResolvedDate]] = None,
) -> dict[str, IntervalResult]:
    """All intervals for one project, keyed by pair id in catalog order.

    Pass `baseline_dates=None` for the baseline project itself.
    """
    return {
        pair.id: compute_interval(dates, pair, baseline_dates)
        for pair in pairs
    }
