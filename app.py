# app.py
# -----------------------------------------------
# ⏱️ Flex time tracker (Streamlit)
# -----------------------------------------------
# Requires: streamlit, pandas, reportlab
# Sessions live in a plain CSV you can open in any spreadsheet.

import logging
from datetime import date, time

import streamlit as st

from calendar_utils import MAX_WEEK_YEAR, MONTH_ABBR, current_period_ranges, format_date_range
from config import SESSIONS_CSV, STATE_FILE, configure_logging
from repository import SessionNotFoundError, SessionRepository
from reports import monthly_report_pdf
from services import FlexBalanceCalculator, group_by_date, summary_stats
from settings import KeyValueStore, load_daily_target, save_daily_target
from timer import Timer, format_elapsed
from utils import (
    flex_balance_color,
    format_flex_balance,
    format_time_12h,
    sessions_to_dataframe,
    weekly_summary_to_dataframe,
)

configure_logging()
logger = logging.getLogger("app")

TITLE_APP = "Flex time tracker"
st.set_page_config(page_title=TITLE_APP, page_icon="⏱️", layout="centered")


@st.cache_resource
def get_repo(path: str) -> SessionRepository:
    return SessionRepository(path)


@st.cache_resource
def get_state(path: str) -> KeyValueStore:
    return KeyValueStore(path)


repo = get_repo(str(SESSIONS_CSV))
state = get_state(str(STATE_FILE))
timer = Timer(state)

st.title(f"⏱️ {TITLE_APP}")


def balance_md(hours: float) -> str:
    return f":{flex_balance_color(hours)}[{format_flex_balance(hours)}]"


def _flash_if_any():
    msg = st.session_state.pop("_flash_success", None)
    if msg:
        st.success(msg)
    warn = st.session_state.pop("_flash_warning", None)
    if warn:
        st.warning(warn)


# =========================
# Sidebar: file + settings
# =========================
with st.sidebar:
    st.caption(f"Session file: `{repo.path}`")
    if not repo.exists():
        st.warning("No session file yet.")
        if st.button("Create new file", use_container_width=True):
            SessionRepository.create(repo.path)
            st.rerun()

    current_target = load_daily_target(state)
    new_target = st.number_input("Daily target (hours)", min_value=0.0, step=0.25, value=current_target)
    if new_target != current_target:
        saved = save_daily_target(state, new_target)
        if saved != new_target:
            st.session_state["_flash_warning"] = f"Invalid target, using default {saved:g} h."
        st.rerun()

if not repo.exists():
    st.info("Create a session file from the sidebar to start tracking.")
    st.stop()

try:
    sessions = repo.list_all()
except (OSError, ValueError) as e:
    logger.error(f"Could not read {repo.path}: {e}")
    st.error(f"Could not read {repo.path}: {e}")
    st.stop()
if repo.last_skipped:
    st.warning(f"{repo.last_skipped} unreadable row(s) in the session file were ignored.")

calc = FlexBalanceCalculator(load_daily_target(state))
today = date.today()

_flash_if_any()
tab_timer, tab_sessions, tab_reports = st.tabs(["Timer", "Sessions", "Reports"])

# =========================
# Timer
# =========================
with tab_timer:
    if timer.is_running:
        st.metric("Elapsed", format_elapsed(timer.elapsed_seconds()))
        st.caption(f"Started {timer.started_at:%Y-%m-%d %H:%M}")
        if st.button("Stop", type="primary", use_container_width=True):
            draft = timer.stop()
            try:
                rec = repo.add(draft.session_date, draft.start_time, draft.end_time)
                st.session_state["_flash_success"] = f"Saved {rec.duration_hours:.2f} h on {rec.session_date}"
            except ValueError as e:
                st.session_state["_flash_warning"] = f"Session not saved: {e}"
            st.rerun()
        if st.button("Refresh"):
            st.rerun()
    else:
        if st.button("Start", type="primary", use_container_width=True):
            timer.start()
            st.rerun()

    today_records = [s for s in sessions if s.session_date == today]
    st.subheader("Today")
    st.markdown(f"- **Worked**: {sum(s.duration_hours for s in today_records if not s.is_day_off):.2f} h")
    st.markdown(f"- **Balance**: {balance_md(calc.daily_balance(today_records))}")
    for s in today_records:
        if s.is_day_off:
            st.caption("Day off")
        else:
            st.caption(f"{format_time_12h(s.start_time.strftime('%H:%M'))} – "
                       f"{format_time_12h(s.end_time.strftime('%H:%M'))} · {s.duration_hours:.2f} h")

# =========================
# Sessions
# =========================
with tab_sessions:
    st.subheader("➕ Add session")
    with st.form("add_session", clear_on_submit=True):
        d = st.date_input("Date", value=today, max_value=today)
        t0 = st.time_input("Start", value=time(9, 0), step=300)
        t1 = st.time_input("End", value=time(17, 0), step=300)
        if st.form_submit_button("Save", use_container_width=True):
            try:
                rec = repo.add(d, t0, t1)
                st.session_state["_flash_success"] = f"Saved {rec.duration_hours:.2f} h on {d}"
                st.rerun()
            except ValueError as e:
                st.warning(str(e))

    with st.expander("🌴 Log day off"):
        off_date = st.date_input("Day off", value=today, key="day_off_date")
        if st.button("Log day off"):
            try:
                repo.log_day_off(off_date)
                st.session_state["_flash_success"] = f"Day off logged for {off_date}"
                st.rerun()
            except ValueError as e:
                st.warning(str(e))

    with st.expander("📥 Merge from another CSV"):
        upload = st.file_uploader("CSV file", type=["csv"])
        if upload is not None and st.button("Merge"):
            try:
                result = repo.merge_from(upload, name=upload.name)
            except ValueError as e:
                st.error(str(e))
            else:
                if result.new_count:
                    st.session_state["_flash_success"] = f"Merged {result.new_count} session(s) from {result.file_name}"
                    st.rerun()
                st.info(f"No new sessions in {result.file_name}.")

    st.subheader("🗓️ History")
    df = sessions_to_dataframe(sessions)
    if df.empty:
        st.info("No sessions recorded yet.")
    else:
        st.dataframe(df.drop(columns=["ID"]), use_container_width=True, hide_index=True)
        labels = {s.id: f"{s.session_date} · " + ("Day off" if s.is_day_off else
                  f"{s.start_time:%H:%M}–{s.end_time:%H:%M}") for s in sessions}
        chosen = st.selectbox("Edit or delete", options=list(labels), format_func=labels.get)
        rec = next(s for s in sessions if s.id == chosen)
        c1, c2, c3 = st.columns(3)
        new_date = c1.date_input("Date", value=rec.session_date, key=f"edit_date_{rec.id}")
        if rec.is_day_off:
            new_start = new_end = None
        else:
            new_start = c2.time_input("Start", value=rec.start_time, step=300, key=f"edit_start_{rec.id}")
            new_end = c3.time_input("End", value=rec.end_time, step=300, key=f"edit_end_{rec.id}")
        b1, b2 = st.columns(2)
        if b1.button("Save changes", use_container_width=True):
            changes = {"session_date": new_date}
            if not rec.is_day_off:
                changes.update(start_time=new_start, end_time=new_end)
            try:
                repo.update(rec.id, **changes)
                st.session_state["_flash_success"] = "Session updated"
                st.rerun()
            except (SessionNotFoundError, ValueError) as e:
                st.warning(str(e))
        if b2.button("Delete", use_container_width=True):
            try:
                repo.delete(rec.id)
                st.session_state["_flash_success"] = "Session deleted"
                st.rerun()
            except SessionNotFoundError as e:
                st.warning(str(e))

# =========================
# Reports
# =========================
with tab_reports:
    st.subheader("📊 Totals")
    cols = st.columns(3)
    for col, (key, label) in zip(cols, [("week", "This week"), ("month", "This month"), ("year", "This year")]):
        period = current_period_ranges(today)[key]
        totals = calc.period_balance(sessions, period.start, period.end)
        col.metric(label, f"{totals.total_hours:.2f} h")
        col.markdown(balance_md(totals.balance))
        col.caption(f"{period.start} to {period.end}")

    stats = summary_stats(sessions)
    st.caption(
        f"All time: {stats['total_hours']:.2f} h in {stats['session_count']} sessions · "
        f"avg {stats['avg_hours_per_session']:.2f} h · longest {stats['longest_session_hours']:.2f} h · "
        f"{len(group_by_date(sessions))} days logged"
    )

    st.subheader("📅 Weekly summary")
    c1, c2 = st.columns(2)
    year = c1.number_input("Year", min_value=1970, max_value=MAX_WEEK_YEAR, value=today.year, step=1)
    month = c2.selectbox("Month", options=list(range(12)), index=today.month - 1, format_func=lambda m: MONTH_ABBR[m])
    try:
        buckets = calc.monthly_summary(sessions, int(year), month)
        pdf_bytes = monthly_report_pdf(sessions, int(year), month, calc.daily_target)
    except ValueError as e:
        st.error(str(e))
        buckets, pdf_bytes = [], b""
    st.dataframe(weekly_summary_to_dataframe(buckets), use_container_width=True, hide_index=True)
    for b in buckets:
        with st.expander(f"W{b.week_number} · {format_date_range(b.start_date, b.end_date)} · {b.total_hours:.2f} h"):
            st.markdown(f"- **Hours**: {b.total_hours:.2f}")
            st.markdown(f"- **Balance**: {balance_md(b.balance)}")

    st.download_button(
        "Download monthly PDF",
        data=pdf_bytes,
        file_name=f"report_{int(year):04d}-{month + 1:02d}.pdf",
        mime="application/pdf",
        disabled=not pdf_bytes,
        use_container_width=True,
    )
