"""
Report serialisers: CSV, Excel (.xlsx) and a printable HTML page.

Every serialiser takes the declared ``headers`` and a list of row dicts
keyed by those headers, and always writes columns in header order.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import NamedTuple

from jinja2 import Environment, select_autoescape
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

Row = Mapping[str, object]


class ExportFormatInfo(NamedTuple):
    media_type: str
    extension: str


EXPORT_FORMATS: dict[str, ExportFormatInfo] = {
    "csv": ExportFormatInfo("text/csv", "csv"),
    "excel": ExportFormatInfo(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"
    ),
    "pdf": ExportFormatInfo("text/html", "html"),
}


def _cell(value: object) -> object:
    return "" if value is None else value


# ── CSV ─────────────────────────────────────────────────────────────
def to_csv(headers: Sequence[str], rows: Sequence[Row]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(row.get(h)) for h in headers])
    return buffer.getvalue()


# ── Excel ───────────────────────────────────────────────────────────
def to_xlsx(sheet_name: str, headers: Sequence[str], rows: Sequence[Row]) -> bytes:
    """Single-sheet workbook with a bold, frozen header row."""
    wb = Workbook()
    ws = wb.active
    ws.title = (sheet_name or "Report")[:31]  # Excel limit

    ws.append(list(headers))
    header_font = Font(bold=True)
    for col in range(1, len(headers) + 1):
        cell = ws.cell(row=1, column=col)
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

    for row in rows:
        ws.append([_cell(row.get(h)) for h in headers])

    ws.freeze_panes = "A2"

    for col_idx in range(1, len(headers) + 1):
        col_letter = get_column_letter(col_idx)
        max_len = max((len(str(c.value)) for c in ws[col_letter] if c.value is not None), default=0)
        ws.column_dimensions[col_letter].width = min(max(10, max_len + 2), 55)

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


# ── HTML (print to PDF) ─────────────────────────────────────────────
_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))

_REPORT_TEMPLATE = _env.from_string(
    """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Report {{ title }} - {{ period }}</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 20px; }
    .header { text-align: center; margin-bottom: 30px; border-bottom: 2px solid #4472C4; padding-bottom: 15px; }
    .header h1 { color: #4472C4; margin: 0 0 10px 0; font-size: 24px; }
    table { width: 100%; border-collapse: collapse; margin-top: 20px; font-size: 11px; }
    th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
    th { background-color: #4472C4; color: white; text-align: center; }
    tr:nth-child(even) { background-color: #f9f9f9; }
    .print-button { background-color: #4472C4; color: white; border: none; padding: 10px 20px; border-radius: 5px; cursor: pointer; margin: 20px 0; }
    @media print { .print-button { display: none; } }
  </style>
</head>
<body>
  <div class="header">
    <h1>Report {{ title | upper }}</h1>
    <div>Period: {{ period }}</div>
    <div>Generated: {{ generated_at }}</div>
  </div>
  <button class="print-button" onclick="window.print()">Print / Save as PDF</button>
  <table>
    <thead>
      <tr>{% for h in headers %}<th>{{ h }}</th>{% endfor %}</tr>
    </thead>
    <tbody>
      {% for row in rows %}
      <tr>{% for cell in row %}<td>{{ cell }}</td>{% endfor %}</tr>
      {% endfor %}
    </tbody>
  </table>
</body>
</html>
"""
)


def to_html(
    title: str,
    period: str,
    headers: Sequence[str],
    rows: Sequence[Row],
    generated_at: datetime | None = None,
) -> str:
    generated_at = generated_at or datetime.now()
    return _REPORT_TEMPLATE.render(
        title=title,
        period=period,
        headers=list(headers),
        rows=[[_cell(row.get(h)) for h in headers] for row in rows],
        generated_at=generated_at.strftime("%Y-%m-%d %H:%M"),
    )


def render_export(
    fmt: str,
    title: str,
    period: str,
    headers: Sequence[str],
    rows: Sequence[Row],
) -> bytes:
    """Serialise *rows* in the requested export format."""
    if fmt == "csv":
        return to_csv(headers, rows).encode("utf-8")
    if fmt == "excel":
        return to_xlsx(title, headers, rows)
    if fmt == "pdf":
        return to_html(title, period, headers, rows).encode("utf-8")
    raise ValueError(f"Unsupported export format: {fmt}")
