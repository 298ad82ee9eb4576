# repository.py
from __future__ import annotations

import logging
import os
import tempfile
import threading
import uuid
from dataclasses import dataclass
from datetime import date, time
from pathlib import Path
from typing import IO, List

import pandas as pd

from domain import SessionRecord, SessionType
from services import calculate_duration_hours

logger = logging.getLogger(__name__)

COLUMNS = ["id", "date", "start_time", "end_time", "duration_hours", "type"]


class SessionNotFoundError(LookupError):
    pass


class DuplicateDayOffError(ValueError):
    pass


@dataclass
class MergeResult:
    file_name: str
    new_count: int


def parse_time(value) -> time | None:
    if isinstance(value, time):
        return value
    if value is None or not str(value).strip():
        return None
    return time.fromisoformat(str(value).strip())


def parse_date(value) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def row_to_record(row: dict) -> SessionRecord:
    """Raises ValueError when the row cannot describe a valid session."""
    kind = SessionType.parse(row.get("type"))
    start = parse_time(row.get("start_time"))
    end = parse_time(row.get("end_time"))
    if kind == SessionType.WORK and (start is None or end is None):
        raise ValueError("work session without start or end time")
    raw_duration = str(row.get("duration_hours") or "").strip()
    duration = float(raw_duration) if raw_duration else 0.0
    return SessionRecord(
        id=str(row["id"]),
        session_date=parse_date(row["date"]),
        start_time=start,
        end_time=end,
        duration_hours=0.0 if kind == SessionType.DAY_OFF else duration,
        type=kind,
    )


def record_to_row(r: SessionRecord) -> dict:
    return {
        "id": r.id,
        "date": r.session_date.isoformat(),
        "start_time": r.start_time.strftime("%H:%M") if r.start_time else "",
        "end_time": r.end_time.strftime("%H:%M") if r.end_time else "",
        "duration_hours": r.duration_hours,
        "type": r.type.value,
    }


def _sort_key(row: dict) -> tuple[str, str]:
    return (str(row.get("date") or ""), str(row.get("start_time") or ""))


def _has_day_off(rows: List[dict], day: date, exclude_id: str | None = None) -> bool:
    """Rows with an unknown type never count as a day off."""
    for row in rows:
        if row["id"] == exclude_id or str(row.get("date") or "").strip() != day.isoformat():
            continue
        try:
            if SessionType.parse(row.get("type")) == SessionType.DAY_OFF:
                return True
        except ValueError:
            continue
    return False


def read_rows(source: str | Path | IO) -> List[dict]:
    """Raw CSV rows as strings; rows without id or date are dropped."""
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        return []
    df = df.reindex(columns=COLUMNS, fill_value="")
    df = df[(df["id"].str.strip() != "") & (df["date"].str.strip() != "")]
    return df.to_dict("records")


class SessionRepository:
    """CRUD over the sessions CSV. Each write replaces the whole file atomically."""
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.last_skipped = 0
        self._lock = threading.RLock()

    @classmethod
    def create(cls, path: str | Path, overwrite: bool = False) -> "SessionRepository":
        repo = cls(path)
        if repo.path.exists() and not overwrite:
            raise FileExistsError(f"Session file already exists: {repo.path}")
        repo.path.parent.mkdir(parents=True, exist_ok=True)
        repo._write_rows([])
        logger.info(f"Created session file {repo.path}")
        return repo

    def exists(self) -> bool:
        return self.path.exists()

    # -- raw file access --------------------------------------------------
    def _read_rows(self) -> List[dict]:
        if not self.path.exists():
            raise FileNotFoundError(f"No session file at {self.path}. Create or open one first.")
        return read_rows(self.path)

    def _write_rows(self, rows: List[dict]) -> None:
        df = pd.DataFrame(rows, columns=COLUMNS)
        fd, tmp = tempfile.mkstemp(prefix=".sessions-", suffix=".csv", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as fh:
                df.to_csv(fh, index=False)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    # -- queries ----------------------------------------------------------
    def list_all(self) -> List[SessionRecord]:
        """Valid sessions, newest first. Unparseable rows are skipped and counted."""
        with self._lock:
            rows = self._read_rows()
        records: List[SessionRecord] = []
        skipped = 0
        for idx, row in enumerate(rows):
            try:
                records.append(row_to_record(row))
            except (KeyError, ValueError, TypeError) as e:
                skipped += 1
                logger.warning(f"Skipping row {idx} (id={row.get('id')!r}): {e}")
        self.last_skipped = skipped
        records.sort(key=lambda r: (r.session_date, r.start_time or time.min), reverse=True)
        return records

    def list_range(self, start: date, end: date) -> List[SessionRecord]:
        return [r for r in self.list_all() if start <= r.session_date <= end]

    # -- mutations --------------------------------------------------------
    def add(self, session_date: date, start_time: time, end_time: time) -> SessionRecord:
        record = SessionRecord(
            id=str(uuid.uuid4()),
            session_date=session_date,
            start_time=start_time,
            end_time=end_time,
            duration_hours=calculate_duration_hours(start_time, end_time),
            type=SessionType.WORK,
        )
        with self._lock:
            rows = self._read_rows()
            rows.append(record_to_row(record))
            self._write_rows(rows)
        logger.info(f"Added session {record.id} on {session_date} ({record.duration_hours} h)")
        return record

    def log_day_off(self, session_date: date) -> SessionRecord:
        record = SessionRecord(
            id=str(uuid.uuid4()),
            session_date=session_date,
            duration_hours=0.0,
            type=SessionType.DAY_OFF,
        )
        with self._lock:
            rows = self._read_rows()
            if _has_day_off(rows, session_date):
                raise DuplicateDayOffError(f"A day off entry already exists for {session_date}")
            rows.append(record_to_row(record))
            self._write_rows(rows)
        logger.info(f"Logged day off on {session_date}")
        return record

    def update(self, session_id: str, **changes) -> SessionRecord:
        """Accepts session_date, start_time, end_time. Times changes recompute the duration."""
        unknown = set(changes) - {"session_date", "start_time", "end_time"}
        if unknown:
            raise TypeError(f"Unsupported fields: {', '.join(sorted(unknown))}")
        with self._lock:
            rows = self._read_rows()
            idx = next((i for i, row in enumerate(rows) if row["id"] == session_id), None)
            if idx is None:
                raise SessionNotFoundError(f"Session with id {session_id} not found")
            record = row_to_record(rows[idx])
            if "session_date" in changes:
                new_date = parse_date(changes["session_date"])
                if (record.is_day_off and new_date != record.session_date
                        and _has_day_off(rows, new_date, exclude_id=session_id)):
                    raise DuplicateDayOffError(f"A day off entry already exists for {new_date}")
                record.session_date = new_date
            if "start_time" in changes:
                record.start_time = parse_time(changes["start_time"])
            if "end_time" in changes:
                record.end_time = parse_time(changes["end_time"])
            if record.type == SessionType.WORK and ("start_time" in changes or "end_time" in changes):
                record.duration_hours = calculate_duration_hours(record.start_time, record.end_time)
            rows[idx] = record_to_row(record)
            self._write_rows(rows)
        logger.info(f"Updated session {session_id}")
        return record

    def delete(self, session_id: str) -> None:
        with self._lock:
            rows = self._read_rows()
            kept = [row for row in rows if row["id"] != session_id]
            if len(kept) == len(rows):
                raise SessionNotFoundError(f"Session with id {session_id} not found")
            self._write_rows(kept)
        logger.info(f"Deleted session {session_id}")

    def merge_from(self, source: str | Path | IO, name: str | None = None) -> MergeResult:
        """Appends rows from another CSV whose ids are not present yet."""
        file_name = name or getattr(source, "name", None) or Path(str(source)).name
        try:
            incoming = read_rows(source)
        except (OSError, ValueError, pd.errors.ParserError) as e:
            raise ValueError(f"Failed to read import file: {e}") from e

        with self._lock:
            rows = self._read_rows()
            existing_ids = {row["id"] for row in rows}
            new_rows = []
            for row in incoming:
                if row["id"] in existing_ids:
                    continue
                existing_ids.add(row["id"])
                new_rows.append(row)
            if not new_rows:
                return MergeResult(file_name=str(file_name), new_count=0)
            merged = sorted(rows + new_rows, key=_sort_key)
            self._write_rows(merged)
        logger.info(f"Merged {len(new_rows)} session(s) from {file_name}")
        return MergeResult(file_name=str(file_name), new_count=len(new_rows))


__all__ = [
    "COLUMNS",
    "DuplicateDayOffError",
    "MergeResult",
    "SessionNotFoundError",
    "SessionRepository",
    "read_rows",
    "record_to_row",
    "row_to_record",
]
