"""Tests for the CSV / Excel / HTML report serialisers."""

import csv
import io
from datetime import datetime

import pytest
from openpyxl import load_workbook

from pontaj.utils.export import (EXPORT_FORMATS, render_export, to_csv,
                                 to_html, to_xlsx)

HEADERS = ["Employee", "Department", "Present Days"]
ROWS = [
    {"Present Days": 18, "Employee": "Ana Pop", "Department": "Sales"},
    {"Employee": "Ion, Jr.", "Department": "IT", "Present Days": None},
]


def test_csv_has_header_plus_one_line_per_row():
    text = to_csv(HEADERS, ROWS)
    parsed = list(csv.reader(io.StringIO(text)))
    assert parsed[0] == HEADERS
    assert len(parsed) == len(ROWS) + 1
    # columns follow header order, not dict order
    assert parsed[1] == ["Ana Pop", "Sales", "18"]
    # commas are quoted, None becomes empty
    assert parsed[2] == ["Ion, Jr.", "IT", ""]


def test_csv_with_no_rows_is_just_the_header():
    assert to_csv(HEADERS, []) == "Employee,Department,Present Days\n"


def test_xlsx_rows_in_header_order():
    content = to_xlsx("attendance", HEADERS, ROWS)
    ws = load_workbook(io.BytesIO(content)).active
    values = [[c.value for c in row] for row in ws.iter_rows()]
    assert len(values) == len(ROWS) + 1
    assert values[0] == HEADERS
    assert values[1] == ["Ana Pop", "Sales", 18]
    assert ws.title == "attendance"
    assert ws.freeze_panes == "A2"


def test_html_escapes_cell_values():
    rows = [{"Employee": "<script>alert(1)</script>", "Department": "R&D", "Present Days": 1}]
    page = to_html("attendance", "2024_6", HEADERS, rows, generated_at=datetime(2024, 6, 30, 12, 0))
    assert "<script>alert(1)</script>" not in page
    assert "&lt;script&gt;" in page
    assert "R&amp;D" in page
    assert "Period: 2024_6" in page
    assert "2024-06-30 12:00" in page
    assert "window.print()" in page


@pytest.mark.parametrize("fmt", sorted(EXPORT_FORMATS))
def test_render_export_returns_bytes(fmt):
    content = render_export(fmt, "leave", "2024", HEADERS, ROWS)
    assert isinstance(content, bytes)
    assert content


def test_render_export_rejects_unknown_format():
    with pytest.raises(ValueError):
        render_export("docx", "leave", "2024", HEADERS, ROWS)
