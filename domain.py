# domain.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import date, time
from enum import Enum


class FlexBalanceError(ValueError):
    """Base error for invalid input to the balance calculations."""


class InvalidConfiguration(FlexBalanceError):
    """Daily target is not a positive finite number."""


class InvalidRange(FlexBalanceError):
    """Period start falls after its end."""


class SessionType(str, Enum):
    WORK = "work"
    DAY_OFF = "day_off"

    @classmethod
    def parse(cls, raw: str | None) -> "SessionType":
        """Legacy rows carry no type: they are work sessions."""
        if raw is None or not str(raw).strip():
            return cls.WORK
        return cls(str(raw).strip())


@dataclass
class SessionRecord:
    """A logged work interval or a day-off marker."""
    id: str
    session_date: date
    start_time: time | None = None
    end_time: time | None = None
    duration_hours: float = 0.0
    type: SessionType = SessionType.WORK

    @property
    def is_day_off(self) -> bool:
        return self.type == SessionType.DAY_OFF

    @property
    def iso_year_week(self) -> tuple[int, int]:
        """Returns (ISO year, ISO week number)."""
        iso = self.session_date.isocalendar()
        return (iso[0], iso[1])


@dataclass(frozen=True)
class PeriodRange:
    """Inclusive [start, end] window of calendar dates."""
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidRange(f"Range start {self.start} is after end {self.end}")

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass
class PeriodTotals:
    total_hours: float = 0.0
    balance: float = 0.0
    skipped: int = 0  # records ignored because their date could not be compared


@dataclass(frozen=True)
class IsoWeek:
    week_number: int
    start_date: date
    end_date: date


@dataclass
class WeekBucket:
    """One ISO week of a month with its aggregated hours and balance."""
    week_number: int
    start_date: date
    end_date: date
    total_hours: float = 0.0
    balance: float = 0.0
