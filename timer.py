# timer.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, date, time
from typing import Callable

from settings import KeyValueStore

logger = logging.getLogger(__name__)

TIMER_KEY = "timer_start_time"
END_OF_DAY = time(23, 59)


@dataclass
class SessionDraft:
    """A finished interval, ready to be stored as a work session."""
    session_date: date
    start_time: time
    end_time: time


def format_elapsed(seconds: int) -> str:
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


class Timer:
    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.clock = clock

    @property
    def started_at(self) -> datetime | None:
        raw = self.store.get(TIMER_KEY)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except (TypeError, ValueError):
            logger.warning(f"Discarding unreadable timer start {raw!r}")
            self.store.remove(TIMER_KEY)
            return None

    @property
    def is_running(self) -> bool:
        return self.started_at is not None

    def start(self) -> datetime:
        current = self.started_at
        if current is not None:
            return current
        now = self.clock()
        self.store.set(TIMER_KEY, now.isoformat())
        logger.info(f"Timer started at {now:%Y-%m-%d %H:%M}")
        return now

    def elapsed_seconds(self) -> int:
        started = self.started_at
        if started is None:
            return 0
        return max(0, int((self.clock() - started).total_seconds()))

    def stop(self) -> SessionDraft | None:
        """Clears the timer and returns the interval, or None if it was not running."""
        started = self.started_at
        if started is None:
            return None
        ended = self.clock()
        self.store.remove(TIMER_KEY)

        end_time = time(ended.hour, ended.minute)
        if ended.date() > started.date():
            # same-day sessions only
            end_time = END_OF_DAY
        draft = SessionDraft(
            session_date=started.date(),
            start_time=time(started.hour, started.minute),
            end_time=end_time,
        )
        logger.info(f"Timer stopped: {draft.session_date} {draft.start_time:%H:%M}-{draft.end_time:%H:%M}")
        return draft
