#!/usr/bin/env python3
"""
Grid Dispatch Center - Runner
=============================

Replays a JSON session file (an ordered list of operator actions) through
the dispatch center, persists the ledger and writes the exports.

Usage:
    python runner.py examples/session_swg.json
    python runner.py examples/session_swg.json --station examples/station_swg.json --export-dir out
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from allocation.session import Action, EditUnit, Quantity, SetAggregate, SetEnabled
from ledger.store import LedgerStore
from reporting.export import write_exports
from station.loader import load_station_file
from station.logging_setup import init_logging
from ui.controller import DispatchCenter


logger = logging.getLogger("runner")

QUANTITIES = {"P": Quantity.ACTIVE, "Q": Quantity.REACTIVE}


def load_session_file(filepath: str) -> dict:
    """Load and validate a JSON session file."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Session file not found: {filepath}")

    with open(path, 'r', encoding="utf-8") as f:
        session = json.load(f)

    if not isinstance(session, dict):
        raise ValueError("Session file must hold a JSON object")
    if not isinstance(session.get("actions"), list):
        raise ValueError("Missing required field: actions")
    return session


def build_action(step: Dict[str, Any]) -> Optional[Action]:
    """
    Translate one session step into an operator action.

    Returns None for "commit", which the center handles itself.
    """
    kind = step.get("action")
    if kind == "set_total":
        quantity = step.get("quantity", "P").upper()
        if quantity not in QUANTITIES:
            raise ValueError(f"Unknown quantity: {quantity}")
        return SetAggregate(QUANTITIES[quantity], step["value"])
    if kind == "edit_unit":
        return EditUnit(step["unit"], step["field"], step["value"])
    if kind == "set_enabled":
        return SetEnabled(step["unit"], bool(step["enabled"]))
    if kind == "commit":
        return None
    raise ValueError(f"Unknown action: {kind}")


def run_session(
    session_file: str,
    station_file: Optional[str] = None,
    ledger_file: Optional[str] = None,
    export_dir: Optional[str] = None
) -> dict:
    """
    Replay a session.

    Args:
        session_file: Path to JSON session file
        station_file: Optional station JSON (reference station otherwise)
        ledger_file: Ledger storage file (station default otherwise)
        export_dir: Directory for CSV/XLSX/JSON/PDF exports

    Returns:
        Dict with final pool, aggregates, committed entry ids and export paths
    """
    session = load_session_file(session_file)
    config = load_station_file(station_file or session.get("station"))
    store = LedgerStore(ledger_file or config.storage.path, config.storage.key)
    center = DispatchCenter(config, store)

    print(f"Session: {session.get('name', Path(session_file).stem)}")
    print(f"Station: {config.name} ({', '.join(config.unit_ids)})")
    print(f"History: {len(center.ledger)} stored entries")

    committed: List[str] = []
    for step in session["actions"]:
        action = build_action(step)
        if action is None:
            committed.append(center.commit())
        else:
            center.apply(action)

    print("\n" + center.sequence_log.text + "\n")

    output = {
        "station": config.name,
        "total_p": {"value": center.state.total_p.value, "mode": center.state.total_p.mode.value},
        "total_q": {"value": center.state.total_q.value, "mode": center.state.total_q.mode.value},
        "units": [
            {
                "id": u.id,
                "enabled": u.enabled,
                "active_mw": u.active_mw,
                "reac_mvar": u.reac_mvar,
                "soc": u.soc,
            }
            for u in center.session.units
        ],
        "committed": committed,
        "ledger_size": len(center.ledger),
        "exports": {},
    }

    if export_dir:
        paths = write_exports(center.ledger.entries, config.unit_ids, export_dir)
        output["exports"] = {kind: str(p) for kind, p in paths.items()}
        for kind, p in paths.items():
            print(f"Exported {kind.upper()}: {p}")

    return output


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Grid Dispatch Center - session replay"
    )
    parser.add_argument(
        "session_file",
        help="Path to JSON session file"
    )
    parser.add_argument(
        "--station", "-s",
        help="Path to station JSON file"
    )
    parser.add_argument(
        "--ledger", "-l",
        help="Path to ledger storage JSON file"
    )
    parser.add_argument(
        "--export-dir", "-e",
        help="Directory for ledger exports"
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file"
    )
    parser.add_argument(
        "--ui",
        action="store_true",
        help="Launch Streamlit UI after the replay"
    )

    args = parser.parse_args(argv)
    init_logging(Path(args.log_file) if args.log_file else None)

    try:
        run_session(args.session_file, args.station, args.ledger, args.export_dir)
    except (FileNotFoundError, json.JSONDecodeError, ValueError, KeyError) as e:
        # pydantic ValidationError is a ValueError
        if isinstance(e, ValidationError):
            print("Station validation error:", file=sys.stderr)
        print(f"Input error: {e}", file=sys.stderr)
        return 2

    if args.ui:
        print("\nLaunching UI...")
        import os
        import subprocess
        env = dict(os.environ)
        if args.station:
            env["DISPATCH_STATION_FILE"] = args.station
        if args.ledger:
            env["DISPATCH_LEDGER_FILE"] = args.ledger
        subprocess.run(["streamlit", "run", "src/ui/app.py"], env=env)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
