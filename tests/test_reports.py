"""Tests for the monthly PDF report."""

from datetime import date, time

import pandas as pd

from domain import SessionRecord
from reports import dataframe_to_pdf, monthly_report_pdf


def test_monthly_report_is_a_pdf():
    records = [
        SessionRecord("a", date(2024, 2, 5), time(9, 0), time(17, 30), 8.5),
        SessionRecord("b", date(2024, 2, 6), time(9, 0), time(15, 0), 6.0),
    ]
    pdf = monthly_report_pdf(records, 2024, 1, 8.0)
    assert pdf.startswith(b"%PDF")


def test_empty_month_still_renders():
    assert monthly_report_pdf([], 2024, 11, 9.0).startswith(b"%PDF")


def test_dataframe_to_pdf_without_summary():
    df = pd.DataFrame([{"Week": 1, "Hours": 2.0}])
    assert dataframe_to_pdf(df, title="Test").startswith(b"%PDF")
