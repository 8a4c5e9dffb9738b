"""
Ledger Export
=============

Renders the dispatch ledger for download. Every export is a pure read of
the ledger entries.

FORMATS:
- CSV: Timestamp, <ID>_P, <ID>_Q, <ID>_SOC per configured unit
- XLSX: same table on a "Dispatch History" sheet
- JSON: the entry list as persisted
- PDF: landscape, paginated table with the header repeated on each page
"""

import json
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from fpdf import FPDF

from ledger.entries import DispatchEntry


SHEET_NAME = "Dispatch History"
REPORT_TITLE = "SWG GRID DISPATCH REPORT"

EXTENSIONS = {"csv": "csv", "xlsx": "xlsx", "json": "json", "pdf": "pdf"}

# (snapshot field, column suffix, spreadsheet label)
_FIELDS = [
    ("active", "P", "P(MW)"),
    ("reac", "Q", "Q(MVAR)"),
    ("soc", "SOC", "SOC(%)"),
]


def ledger_columns(unit_ids: List[str]) -> List[str]:
    columns = ["Timestamp"]
    for unit_id in unit_ids:
        columns.extend(f"{unit_id}_{suffix}" for _, suffix, _ in _FIELDS)
    return columns


def ledger_frame(entries: List[DispatchEntry], unit_ids: List[str]) -> pd.DataFrame:
    """
    Tabulate entries, one row per entry in ledger order.

    Units missing from an entry leave their cells empty. Columns whose
    values are all integral use the nullable Int64 dtype so they render
    without a decimal point.
    """
    rows = []
    for entry in entries:
        row: Dict[str, Optional[float]] = {"Timestamp": entry.timestamp}
        for unit_id in unit_ids:
            snap = entry.units.get(unit_id)
            for attr, suffix, _ in _FIELDS:
                row[f"{unit_id}_{suffix}"] = getattr(snap, attr) if snap is not None else None
        rows.append(row)

    df = pd.DataFrame(rows, columns=ledger_columns(unit_ids))
    for col in df.columns[1:]:
        values = pd.to_numeric(df[col], errors="coerce")
        present = values.dropna()
        if (present == present.round()).all():
            df[col] = values.round().astype("Int64")
        else:
            df[col] = values
    return df


def to_csv(entries: List[DispatchEntry], unit_ids: List[str]) -> str:
    return ledger_frame(entries, unit_ids).to_csv(index=False)


def to_xlsx(entries: List[DispatchEntry], unit_ids: List[str]) -> bytes:
    df = ledger_frame(entries, unit_ids)
    labels = {}
    for unit_id in unit_ids:
        for _, suffix, label in _FIELDS:
            labels[f"{unit_id}_{suffix}"] = f"{unit_id} {label}"
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.rename(columns=labels).to_excel(writer, sheet_name=SHEET_NAME, index=False)
    output.seek(0)
    return output.getvalue()


def to_json(entries: List[DispatchEntry]) -> str:
    return json.dumps([entry.to_record() for entry in entries], indent=2)


def _cell_text(value) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value)


class _LedgerPDF(FPDF):
    """FPDF with a repeated table header and a page-number footer."""

    ROW_HEIGHT = 18

    def __init__(self, columns: List[str], widths: List[float], title: str, generated: str):
        super().__init__(orientation="L", unit="pt", format="A4")
        self.columns = columns
        self.widths = widths
        self.title_text = title
        self.generated = generated
        self.set_margins(40, 40, 40)
        self.set_auto_page_break(auto=False)

    def header(self):
        if self.page_no() == 1:
            self.set_font("Helvetica", "B", 18)
            self.cell(0, 24, self.title_text)
            self.ln(24)
            self.set_font("Helvetica", "", 10)
            self.cell(0, 14, f"Generated: {self.generated}")
            self.ln(22)
        self.set_font("Helvetica", "B", 9)
        self.set_fill_color(15, 23, 42)
        self.set_text_color(255, 255, 255)
        for name, width in zip(self.columns, self.widths):
            self.cell(width, self.ROW_HEIGHT, name, border=1, align="C", fill=True)
        self.ln(self.ROW_HEIGHT)
        self.set_text_color(0, 0, 0)
        self.set_font("Helvetica", "", 9)

    def footer(self):
        self.set_y(-30)
        self.set_font("Helvetica", "", 8)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")

    def row(self, values: List[str]):
        if self.get_y() + self.ROW_HEIGHT > self.h - self.b_margin - 20:
            self.add_page()
        for value, width in zip(values, self.widths):
            self.cell(width, self.ROW_HEIGHT, value, border=1, align="C")
        self.ln(self.ROW_HEIGHT)


def to_pdf(
    entries: List[DispatchEntry],
    unit_ids: List[str],
    generated: Optional[str] = None,
    title: str = REPORT_TITLE
) -> bytes:
    """
    Paginated tabular report of the ledger.

    Args:
        entries: Ledger entries, newest first
        unit_ids: Configured unit ids (column order)
        generated: "Generated:" line text; defaults to now
        title: Report title

    Returns:
        PDF document bytes
    """
    df = ledger_frame(entries, unit_ids)
    columns = list(df.columns)
    timestamp_width = 130.0
    page_width = 841.89 - 80  # A4 landscape minus margins
    other = (page_width - timestamp_width) / max(1, len(columns) - 1)
    widths = [timestamp_width] + [other] * (len(columns) - 1)

    generated = generated or datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    pdf = _LedgerPDF(columns, widths, title, generated)
    pdf.add_page()
    if df.empty:
        pdf.cell(sum(widths), pdf.ROW_HEIGHT, "NO DISPATCH SEQUENCE COMMITTED", border=1, align="C")
        pdf.ln(pdf.ROW_HEIGHT)
    for record in df.itertuples(index=False):
        pdf.row([_cell_text(v) for v in record])
    return bytes(pdf.output())


def export_filename(kind: str, now: Optional[datetime] = None) -> str:
    """dispatch_history_<epoch ms>.<ext> (dispatch_report_ for PDF)."""
    if kind not in EXTENSIONS:
        raise ValueError(f"Unknown export format: {kind}")
    now = now or datetime.now()
    stem = "dispatch_report" if kind == "pdf" else "dispatch_history"
    return f"{stem}_{int(now.timestamp() * 1000)}.{EXTENSIONS[kind]}"


def write_exports(
    entries: List[DispatchEntry],
    unit_ids: List[str],
    directory: str,
    now: Optional[datetime] = None
) -> Dict[str, Path]:
    """
    Write all four exports into a directory.

    Returns:
        Dict of format to written path
    """
    now = now or datetime.now()
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = {kind: out_dir / export_filename(kind, now) for kind in EXTENSIONS}
    paths["csv"].write_text(to_csv(entries, unit_ids), encoding="utf-8")
    paths["xlsx"].write_bytes(to_xlsx(entries, unit_ids))
    paths["json"].write_text(to_json(entries), encoding="utf-8")
    paths["pdf"].write_bytes(to_pdf(entries, unit_ids, generated=now.strftime("%Y-%m-%d %H:%M:%S")))
    return paths
