"""Tests for the CSV session store."""

import io
from datetime import date, time

import pytest

from domain import SessionType
from repository import (
    COLUMNS,
    DuplicateDayOffError,
    SessionNotFoundError,
    SessionRepository,
)
from services import period_balance


@pytest.fixture
def repo(tmp_path):
    return SessionRepository.create(tmp_path / "sessions.csv")


def test_create_writes_header_only(repo):
    assert repo.path.read_text().splitlines() == [",".join(COLUMNS)]
    assert repo.list_all() == []


def test_create_refuses_to_overwrite(repo):
    with pytest.raises(FileExistsError):
        SessionRepository.create(repo.path)
    SessionRepository.create(repo.path, overwrite=True)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        SessionRepository(tmp_path / "nope.csv").list_all()


def test_add_computes_duration(repo):
    rec = repo.add(date(2024, 3, 4), time(9, 0), time(17, 30))
    assert rec.duration_hours == 8.5
    assert rec.type == SessionType.WORK

    stored = repo.list_all()
    assert len(stored) == 1
    assert stored[0].id == rec.id
    assert stored[0].start_time == time(9, 0)
    assert stored[0].duration_hours == 8.5


def test_add_rejects_reversed_times(repo):
    with pytest.raises(ValueError):
        repo.add(date(2024, 3, 4), time(17, 0), time(9, 0))
    assert repo.list_all() == []


def test_list_all_is_newest_first(repo):
    repo.add(date(2024, 3, 4), time(9, 0), time(12, 0))
    repo.add(date(2024, 3, 5), time(9, 0), time(12, 0))
    repo.add(date(2024, 3, 4), time(13, 0), time(17, 0))
    listed = [(r.session_date, r.start_time) for r in repo.list_all()]
    assert listed == [
        (date(2024, 3, 5), time(9, 0)),
        (date(2024, 3, 4), time(13, 0)),
        (date(2024, 3, 4), time(9, 0)),
    ]


def test_list_range(repo):
    repo.add(date(2024, 3, 4), time(9, 0), time(12, 0))
    repo.add(date(2024, 4, 1), time(9, 0), time(12, 0))
    assert [r.session_date for r in repo.list_range(date(2024, 3, 1), date(2024, 3, 31))] == [date(2024, 3, 4)]


def test_log_day_off(repo):
    rec = repo.log_day_off(date(2024, 3, 5))
    stored = repo.list_all()[0]
    assert stored.id == rec.id
    assert stored.is_day_off
    assert stored.start_time is None and stored.duration_hours == 0.0
    with pytest.raises(DuplicateDayOffError):
        repo.log_day_off(date(2024, 3, 5))


def test_update_times_recomputes_duration(repo):
    rec = repo.add(date(2024, 3, 4), time(9, 0), time(17, 0))
    updated = repo.update(rec.id, end_time=time(17, 45))
    assert updated.duration_hours == 8.75
    assert repo.list_all()[0].duration_hours == 8.75


def test_update_date_keeps_duration(repo):
    rec = repo.add(date(2024, 3, 4), time(9, 0), time(17, 0))
    repo.update(rec.id, session_date=date(2024, 3, 6))
    stored = repo.list_all()[0]
    assert stored.session_date == date(2024, 3, 6)
    assert stored.duration_hours == 8.0


def test_update_accepts_text_times(repo):
    rec = repo.add(date(2024, 3, 4), time(9, 0), time(17, 0))
    assert repo.update(rec.id, start_time="08:30").duration_hours == 8.5


def test_update_unknown_session(repo):
    with pytest.raises(SessionNotFoundError):
        repo.update("missing", end_time=time(10, 0))


def test_update_rejects_unknown_fields(repo):
    rec = repo.add(date(2024, 3, 4), time(9, 0), time(17, 0))
    with pytest.raises(TypeError):
        repo.update(rec.id, duration_hours=3)


def test_delete(repo):
    keep = repo.add(date(2024, 3, 4), time(9, 0), time(12, 0))
    gone = repo.add(date(2024, 3, 4), time(13, 0), time(17, 0))
    repo.delete(gone.id)
    assert [r.id for r in repo.list_all()] == [keep.id]
    with pytest.raises(SessionNotFoundError):
        repo.delete(gone.id)


def test_legacy_rows_without_type_are_work(tmp_path):
    path = tmp_path / "legacy.csv"
    path.write_text(
        "id,date,start_time,end_time,duration_hours\n"
        "a,2024-03-04,09:00,17:30,8.5\n"
    )
    rec = SessionRepository(path).list_all()[0]
    assert rec.type == SessionType.WORK
    assert rec.duration_hours == 8.5


def test_bad_rows_are_skipped_but_kept_on_disk(tmp_path):
    path = tmp_path / "sessions.csv"
    path.write_text(
        "id,date,start_time,end_time,duration_hours,type\n"
        "a,2024-03-04,09:00,17:30,8.5,work\n"
        "b,not-a-date,09:00,10:00,1,work\n"
        ",2024-03-04,09:00,10:00,1,work\n"
        "c,2024-03-05,,,2,work\n"
    )
    repo = SessionRepository(path)
    assert [r.id for r in repo.list_all()] == ["a"]
    assert repo.last_skipped == 2

    repo.add(date(2024, 3, 6), time(9, 0), time(10, 0))
    assert "not-a-date" in path.read_text()


def test_unknown_type_row_does_not_block_day_off(tmp_path):
    path = tmp_path / "sessions.csv"
    path.write_text(
        "id,date,start_time,end_time,duration_hours,type\n"
        "a,2024-03-04,09:00,17:30,8.5,work\n"
        "b,2024-03-05,,,0,vacation\n"
    )
    repo = SessionRepository(path)
    rec = repo.log_day_off(date(2024, 3, 5))
    assert [r.id for r in repo.list_all() if r.is_day_off] == [rec.id]
    assert repo.last_skipped == 1
    assert "vacation" in path.read_text()


def test_moving_day_off_onto_another_is_rejected(repo):
    repo.log_day_off(date(2024, 3, 5))
    other = repo.log_day_off(date(2024, 3, 6))
    with pytest.raises(DuplicateDayOffError):
        repo.update(other.id, session_date=date(2024, 3, 5))
    day_offs = [r.session_date for r in repo.list_all() if r.is_day_off]
    assert sorted(day_offs) == [date(2024, 3, 5), date(2024, 3, 6)]


def test_moving_day_off_to_free_date(repo):
    rec = repo.log_day_off(date(2024, 3, 6))
    repo.add(date(2024, 3, 7), time(9, 0), time(12, 0))
    repo.update(rec.id, session_date=date(2024, 3, 7))
    repo.update(rec.id, session_date=date(2024, 3, 7))
    assert [r.session_date for r in repo.list_all() if r.is_day_off] == [date(2024, 3, 7)]


def test_writes_leave_no_temp_files(repo, tmp_path):
    rec = repo.add(date(2024, 3, 4), time(9, 0), time(12, 0))
    repo.update(rec.id, end_time=time(13, 0))
    repo.delete(rec.id)
    assert [p.name for p in tmp_path.iterdir()] == ["sessions.csv"]


def test_merge_adds_only_new_ids(repo, tmp_path):
    existing = repo.add(date(2024, 3, 5), time(9, 0), time(12, 0))
    other = tmp_path / "laptop.csv"
    other.write_text(
        "id,date,start_time,end_time,duration_hours,type\n"
        f"{existing.id},2024-03-05,09:00,12:00,3,work\n"
        "new-1,2024-03-04,13:00,15:00,2,work\n"
        "new-1,2024-03-04,13:00,15:00,2,work\n"
    )
    result = repo.merge_from(other)
    assert result.file_name == "laptop.csv"
    assert result.new_count == 1

    lines = repo.path.read_text().splitlines()
    assert lines[1].startswith("new-1,2024-03-04")
    assert lines[2].startswith(f"{existing.id},2024-03-05")


def test_merge_without_new_rows(repo):
    rec = repo.add(date(2024, 3, 5), time(9, 0), time(12, 0))
    before = repo.path.read_text()
    buf = io.StringIO(before)
    result = repo.merge_from(buf, name="copy.csv")
    assert (result.file_name, result.new_count) == ("copy.csv", 0)
    assert repo.path.read_text() == before
    assert repo.list_all()[0].id == rec.id


def test_merge_from_missing_file(repo, tmp_path):
    with pytest.raises(ValueError):
        repo.merge_from(tmp_path / "absent.csv")


def test_stored_sessions_feed_period_balance(repo):
    repo.add(date(2024, 3, 4), time(9, 0), time(17, 30))
    repo.log_day_off(date(2024, 3, 5))
    totals = period_balance(repo.list_all(), date(2024, 3, 4), date(2024, 3, 5), 8.0)
    assert totals.total_hours == 8.5
    assert totals.balance == 0.5
