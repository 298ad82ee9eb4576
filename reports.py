# reports.py
from __future__ import annotations
import io
from typing import Iterable

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from calendar_utils import MONTH_ABBR, month_bounds
from domain import SessionRecord
from services import FlexBalanceCalculator
from utils import format_flex_balance, weekly_summary_to_dataframe

MONTH_NAMES = ["January", "February", "March", "April", "May", "June", "July",
               "August", "September", "October", "November", "December"]


def dataframe_to_pdf(df: pd.DataFrame, title: str, summary_lines: list[str] | None = None) -> bytes:
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=landscape(A4), topMargin=24, bottomMargin=24, leftMargin=24, rightMargin=24)
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(name="TitleCentered", parent=styles["Title"], alignment=TA_CENTER)
    summary_style = ParagraphStyle(
        name="Summary", parent=styles["Normal"], alignment=TA_CENTER,
        textColor=colors.black, fontSize=11, leading=13, spaceBefore=4, spaceAfter=2
    )
    story = [Paragraph(title, title_style), Spacer(1, 8)]
    if df.empty:
        story.append(Paragraph("No sessions recorded.", styles["Normal"]))
    else:
        data = [list(df.columns)] + df.astype(str).values.tolist()
        table = Table(data, repeatRows=1, hAlign="CENTER")
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#F5F5F7")),
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#E0E0E0")),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.whitesmoke, colors.white]),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]))
        story.append(table)
    if summary_lines:
        story.append(Spacer(1, 12))
        box = Table([[Paragraph(line, summary_style)] for line in summary_lines],
                    colWidths=[min(520, 0.65 * doc.width)], hAlign="CENTER")
        box.setStyle(TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("BOX", (0, 0), (-1, -1), 0.6, colors.HexColor("#C7CCD6")),
            ("INNERPADDING", (0, 0), (-1, -1), 8),
        ]))
        story.append(box)
    doc.build(story)
    return buf.getvalue()


def monthly_report_pdf(records: Iterable[SessionRecord], year: int, month: int, daily_target: float) -> bytes:
    """Weekly breakdown of a 0-indexed month, with the month's own totals."""
    records = list(records)
    calc = FlexBalanceCalculator(daily_target)
    buckets = calc.monthly_summary(records, year, month)
    first, last = month_bounds(year, month)
    totals = calc.period_balance(records, first, last)
    lines = [
        f"{MONTH_ABBR[month]} {first.day}–{last.day}: {totals.total_hours:.2f} h worked",
        f"Flex balance: {format_flex_balance(totals.balance)} (target {calc.daily_target:g} h/day)",
    ]
    df = weekly_summary_to_dataframe(buckets)
    # base-14 fonts have no U+2212 glyph
    df["Balance"] = df["Balance"].str.replace("−", "-")
    lines = [line.replace("−", "-") for line in lines]
    return dataframe_to_pdf(df, title=f"Time report: {MONTH_NAMES[month]} {year}", summary_lines=lines)
