import json
import re
from datetime import datetime, timezone
from io import BytesIO

import pandas as pd
import pytest

from ledger.entries import DispatchEntry
from reporting.export import (
    export_filename,
    ledger_columns,
    ledger_frame,
    to_csv,
    to_json,
    to_pdf,
    to_xlsx,
    write_exports,
)


UNIT_IDS = ["SWG01", "SWG02", "SWG03"]


def entry(entry_id, timestamp, p=(46, 27, 27), q=(6, 3, 3), soc=(82, 76, 64)):
    return DispatchEntry.model_validate({
        "id": entry_id,
        "timestamp": timestamp,
        "units": {
            uid: {"active": p[i], "reac": q[i], "soc": soc[i]}
            for i, uid in enumerate(UNIT_IDS)
        },
    })


@pytest.fixture
def entries():
    return [
        entry("b", "2026-10-19 09:00:00", p=(50, 50, 0), q=(5, 2, 0)),
        entry("a", "2026-10-19 08:00:00"),
    ]


def test_columns_follow_configured_units():
    assert ledger_columns(["U1", "U2"]) == [
        "Timestamp", "U1_P", "U1_Q", "U1_SOC", "U2_P", "U2_Q", "U2_SOC",
    ]


def test_csv(entries):
    lines = to_csv(entries, UNIT_IDS).splitlines()
    assert lines[0] == (
        "Timestamp,SWG01_P,SWG01_Q,SWG01_SOC,SWG02_P,SWG02_Q,SWG02_SOC,SWG03_P,SWG03_Q,SWG03_SOC"
    )
    assert lines[1] == "2026-10-19 09:00:00,50,5,82,50,2,76,0,0,64"
    assert lines[2] == "2026-10-19 08:00:00,46,6,82,27,3,76,27,3,64"


def test_missing_unit_is_blank(entries):
    partial = DispatchEntry.model_validate({
        "id": "c",
        "timestamp": "2026-10-19 10:00:00",
        "units": {"SWG01": {"active": 10, "reac": 0, "soc": 50}},
    })
    lines = to_csv([partial], UNIT_IDS).splitlines()
    assert lines[1] == "2026-10-19 10:00:00,10,0,50,,,,,,"


def test_fractional_values_kept(entries):
    frac = entry("c", "2026-10-19 10:00:00", soc=(82.5, 76, 64))
    df = ledger_frame([frac], UNIT_IDS)
    assert df.loc[0, "SWG01_SOC"] == 82.5
    assert df.loc[0, "SWG02_SOC"] == 76


def test_json(entries):
    data = json.loads(to_json(entries))
    assert [e["id"] for e in data] == ["b", "a"]
    assert data[1]["units"]["SWG01"] == {"active": 46.0, "reac": 6.0, "soc": 82.0}


def test_xlsx(entries):
    df = pd.read_excel(BytesIO(to_xlsx(entries, UNIT_IDS)), sheet_name="Dispatch History")
    assert list(df.columns[:4]) == ["Timestamp", "SWG01 P(MW)", "SWG01 Q(MVAR)", "SWG01 SOC(%)"]
    assert len(df) == 2
    assert df.loc[1, "SWG03 P(MW)"] == 27


def test_pdf(entries):
    data = to_pdf(entries, UNIT_IDS, generated="2026-10-19 09:05:00")
    assert data.startswith(b"%PDF")


def test_pdf_paginates_long_history():
    many = [entry(str(i), "2026-10-19 08:00:00") for i in range(120)]
    short = to_pdf(many[:1], UNIT_IDS, generated="x")
    long = to_pdf(many, UNIT_IDS, generated="x")
    assert long.startswith(b"%PDF")
    assert len(long) > len(short)


def test_pdf_empty_ledger():
    assert to_pdf([], UNIT_IDS, generated="x").startswith(b"%PDF")


def test_export_filename():
    now = datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)
    ms = int(now.timestamp() * 1000)
    assert export_filename("csv", now) == f"dispatch_history_{ms}.csv"
    assert export_filename("pdf", now) == f"dispatch_report_{ms}.pdf"
    assert re.match(r"dispatch_history_\d+\.xlsx$", export_filename("xlsx"))
    with pytest.raises(ValueError):
        export_filename("docx", now)


def test_write_exports(tmp_path, entries):
    paths = write_exports(entries, UNIT_IDS, str(tmp_path / "out"))
    assert set(paths) == {"csv", "xlsx", "json", "pdf"}
    for path in paths.values():
        assert path.exists() and path.stat().st_size > 0


def test_exports_do_not_mutate_entries(entries):
    before = [e.model_dump() for e in entries]
    to_csv(entries, UNIT_IDS)
    to_xlsx(entries, UNIT_IDS)
    to_json(entries)
    to_pdf(entries, UNIT_IDS, generated="x")
    assert [e.model_dump() for e in entries] == before
