# utils.py
import pandas as pd
from typing import Iterable

from calendar_utils import format_date_range
from domain import SessionRecord, WeekBucket


def format_flex_balance(balance_hours: float) -> str:
    """'+2h 30m' for a surplus, '−0h 45m' for a deficit."""
    sign = "−" if balance_hours < 0 else "+"
    total_min = int(round(abs(balance_hours) * 60))
    h, m = divmod(total_min, 60)
    return f"{sign}{h}h {m}m"


def flex_balance_color(balance_hours: float) -> str:
    if balance_hours > 0:
        return "green"
    if balance_hours < 0:
        return "red"
    return "gray"


def format_time_12h(hhmm: str) -> str:
    """'15:04' -> '3:04 PM'. Empty input gives an empty string."""
    if not hhmm:
        return ""
    parts = hhmm.split(":")
    hours = int(parts[0])
    ampm = "PM" if hours >= 12 else "AM"
    hours = hours % 12 or 12
    return f"{hours}:{parts[1]} {ampm}"


def sessions_to_dataframe(sessions: Iterable[SessionRecord]) -> pd.DataFrame:
    rows = []
    for s in sessions:
        year, week = s.iso_year_week
        rows.append({
            "ID": s.id,
            "Date": s.session_date.isoformat(),
            "ISO Week": f"{year}-W{week:02d}",
            "Type": "Day off" if s.is_day_off else "Work",
            "Start": s.start_time.strftime("%H:%M") if s.start_time else "",
            "End": s.end_time.strftime("%H:%M") if s.end_time else "",
            "Hours": s.duration_hours,
        })
    df = pd.DataFrame(rows, columns=["ID", "Date", "ISO Week", "Type", "Start", "End", "Hours"])
    if not df.empty:
        df = df.sort_values(["Date", "Start"], ascending=False).reset_index(drop=True)
    return df


def weekly_summary_to_dataframe(buckets: Iterable[WeekBucket]) -> pd.DataFrame:
    rows = []
    for b in buckets:
        rows.append({
            "Week": b.week_number,
            "Dates": format_date_range(b.start_date, b.end_date),
            "Hours": round(b.total_hours, 2),
            "Balance": format_flex_balance(b.balance),
        })
    return pd.DataFrame(rows, columns=["Week", "Dates", "Hours", "Balance"])
