"""
Reporting
=========

Read-only renderings of dispatch state:
- sequence_log: operator dispatch text with edit/reset buffer
- export: CSV, XLSX, JSON and PDF views of the ledger
"""

from .sequence_log import SequenceLogBuffer, render_sequence_log
from .export import export_filename, ledger_frame, to_csv, to_json, to_pdf, to_xlsx, write_exports

__all__ = [
    "SequenceLogBuffer",
    "render_sequence_log",
    "export_filename",
    "ledger_frame",
    "to_csv",
    "to_json",
    "to_pdf",
    "to_xlsx",
    "write_exports",
]
