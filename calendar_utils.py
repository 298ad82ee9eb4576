# calendar_utils.py
# ISO weeks go to the month holding their Thursday.
from __future__ import annotations
import calendar
from datetime import date, timedelta

from domain import IsoWeek, PeriodRange

MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

# A month touches at most 6 ISO weeks.
MAX_WEEK_WALK = 10
# The walk past December 9999 would need ISO year 10000.
MAX_WEEK_YEAR = date.max.year - 1


def iso_week_number(d: date) -> int:
    return d.isocalendar()[1]


def iso_weeks_in_year(year: int) -> int:
    """52 or 53. Dec 28 always falls in the last ISO week of its year."""
    return date(year, 12, 28).isocalendar()[1]


def iso_week_start_date(year: int, week: int) -> date:
    """Monday of ISO week `week` of ISO year `year`."""
    if not 1 <= week <= iso_weeks_in_year(year):
        raise ValueError(f"ISO year {year} has no week {week}")
    return date.fromisocalendar(year, week, 1)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a 0-indexed month."""
    if not 0 <= month <= 11:
        raise ValueError(f"Month must be in 0..11, got {month}")
    days = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, 1), date(year, month + 1, days)


def weeks_overlapping_month(year: int, month: int) -> list[IsoWeek]:
    """
    ISO weeks whose Thursday falls in the given month (0 = January).

    Walks forward from the week holding the 1st of the month, rolling over
    into the next ISO year after its last week, until a week starts after the
    month's last day.
    """
    if not 1 <= year <= MAX_WEEK_YEAR:
        raise ValueError(f"Year must be in 1..{MAX_WEEK_YEAR}, got {year}")
    first, last = month_bounds(year, month)
    iso_year, week, _ = first.isocalendar()

    weeks: list[IsoWeek] = []
    for _ in range(MAX_WEEK_WALK):
        monday = iso_week_start_date(iso_year, week)
        if monday > last:
            break
        thursday = monday + timedelta(days=3)
        if thursday.year == year and thursday.month == month + 1:
            weeks.append(IsoWeek(week, monday, monday + timedelta(days=6)))
        week += 1
        if week > iso_weeks_in_year(iso_year):
            week = 1
            iso_year += 1
    return weeks


def format_date_range(start: date, end: date) -> str:
    """'Mar 4–10' within one month, 'Feb 26 – Mar 3' across months."""
    if (start.year, start.month) == (end.year, end.month):
        return f"{MONTH_ABBR[start.month - 1]} {start.day}–{end.day}"
    return f"{MONTH_ABBR[start.month - 1]} {start.day} – {MONTH_ABBR[end.month - 1]} {end.day}"


def current_period_ranges(today: date) -> dict[str, PeriodRange]:
    """This week (from Monday), this month and this year, each ending today."""
    return {
        "week": PeriodRange(today - timedelta(days=today.weekday()), today),
        "month": PeriodRange(today.replace(day=1), today),
        "year": PeriodRange(date(today.year, 1, 1), today),
    }
