# services.py
from __future__ import annotations
import logging
import math
from collections import defaultdict
from datetime import datetime, date, time
from typing import Iterable, Dict, List

from calendar_utils import weeks_overlapping_month
from domain import (
    InvalidConfiguration,
    PeriodRange,
    PeriodTotals,
    SessionRecord,
    SessionType,
    WeekBucket,
)

logger = logging.getLogger(__name__)


def validate_daily_target(value) -> float:
    """Returns the target as float or raises InvalidConfiguration."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfiguration(f"Daily target must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise InvalidConfiguration(f"Daily target must be positive and finite, got {value!r}")
    return float(value)


def calculate_duration_hours(start: time, end: time) -> float:
    """Returns end minus start in hours (2 decimals). Same-day intervals only."""
    t0 = datetime.combine(date.min, start)
    t1 = datetime.combine(date.min, end)
    if t1 <= t0:
        raise ValueError(f"End time {end:%H:%M} must be after start time {start:%H:%M}")
    return round((t1 - t0).total_seconds() / 3600.0, 2)


def group_by_date(records: Iterable[SessionRecord]) -> Dict[date, List[SessionRecord]]:
    grouped: Dict[date, List[SessionRecord]] = defaultdict(list)
    for r in records:
        grouped[r.session_date].append(r)
    return dict(grouped)


def worked_hours(records: Iterable[SessionRecord]) -> float:
    return sum((r.duration_hours for r in records if r.type == SessionType.WORK), 0.0)


class FlexBalanceCalculator:
    """Business rules for the flex balance against a daily target."""
    def __init__(self, daily_target: float):
        self.daily_target = validate_daily_target(daily_target)

    def daily_balance(self, records_for_date: Iterable[SessionRecord]) -> float:
        """
        Signed hours against the target for one date.
        A day-off marker zeroes the day whatever else was logged.
        """
        records_for_date = list(records_for_date)
        if any(r.is_day_off for r in records_for_date):
            return 0.0
        return worked_hours(records_for_date) - self.daily_target

    def period_balance(self, records: Iterable[SessionRecord], start: date, end: date) -> PeriodTotals:
        """
        Sums worked hours and daily balances over [start, end].
        Dates without any record inside the range add nothing.
        """
        period = PeriodRange(start, end)
        in_range: List[SessionRecord] = []
        skipped = 0
        for r in records:
            try:
                if r.session_date in period:
                    in_range.append(r)
            except TypeError:
                skipped += 1
                logger.warning(f"Skipping session {r.id!r}: unusable date {r.session_date!r}")

        totals = PeriodTotals(skipped=skipped)
        for day_records in group_by_date(in_range).values():
            totals.total_hours += worked_hours(day_records)
            totals.balance += self.daily_balance(day_records)
        return totals

    def monthly_summary(self, records: Iterable[SessionRecord], year: int, month: int) -> List[WeekBucket]:
        """One bucket per ISO week of the month (0-indexed), in calendar order."""
        records = list(records)
        buckets: List[WeekBucket] = []
        for week in weeks_overlapping_month(year, month):
            totals = self.period_balance(records, week.start_date, week.end_date)
            buckets.append(WeekBucket(
                week_number=week.week_number,
                start_date=week.start_date,
                end_date=week.end_date,
                total_hours=totals.total_hours,
                balance=totals.balance,
            ))
        return buckets


def daily_balance(records_for_date: Iterable[SessionRecord], daily_target: float) -> float:
    return FlexBalanceCalculator(daily_target).daily_balance(records_for_date)


def period_balance(records: Iterable[SessionRecord], start: date, end: date, daily_target: float) -> PeriodTotals:
    return FlexBalanceCalculator(daily_target).period_balance(records, start, end)


def monthly_summary(records: Iterable[SessionRecord], year: int, month: int, daily_target: float) -> List[WeekBucket]:
    return FlexBalanceCalculator(daily_target).monthly_summary(records, year, month)


def summary_stats(records: Iterable[SessionRecord]) -> dict:
    """All-time figures over work sessions."""
    durations = [r.duration_hours for r in records if r.type == SessionType.WORK]
    if not durations:
        return {"total_hours": 0.0, "session_count": 0,
                "avg_hours_per_session": 0.0, "longest_session_hours": 0.0}
    total = sum(durations)
    return {
        "total_hours": total,
        "session_count": len(durations),
        "avg_hours_per_session": total / len(durations),
        "longest_session_hours": max(durations),
    }
