"""
Station Loading
===============

Builds a validated StationConfig from a JSON station file, or the
reference three-unit SWG station when no file is given.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from .models import StationConfig


REFERENCE_STATION: Dict[str, Any] = {
    "name": "GRID_DISPATCH_CENTER",
    "units": [
        {"id": "SWG01", "name": "SWG_UNIT_01", "badge_color": "#10b981",
         "weight": 0.46, "reactive_weight": 0.50},
        {"id": "SWG02", "name": "SWG_UNIT_02", "badge_color": "#8b5cf6",
         "weight": 0.27, "reactive_weight": 0.25},
        {"id": "SWG03", "name": "SWG_UNIT_03", "badge_color": "#f59e0b",
         "weight": 0.27, "reactive_weight": 0.25},
    ],
    # SWG03 offline: SWG01 and SWG02 share evenly
    "weight_profiles": [
        {
            "units": ["SWG01", "SWG02"],
            "weights": {"SWG01": 0.50, "SWG02": 0.50},
            "reactive_weights": {"SWG01": 0.50, "SWG02": 0.50},
        }
    ],
}


def default_station() -> StationConfig:
    """Reference SWG station."""
    return StationConfig.model_validate(REFERENCE_STATION)


def load_station_file(path: Optional[str]) -> StationConfig:
    """
    Load and validate a JSON station file.

    Args:
        path: Path to the station JSON, or None for the reference station

    Returns:
        Validated StationConfig

    Raises:
        FileNotFoundError: if the file does not exist
        json.JSONDecodeError: if the file is not JSON
        pydantic.ValidationError: if the content is not a valid station
    """
    if path is None:
        return default_station()
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Station file not found: {path}")
    data = json.loads(p.read_text(encoding="utf-8"))
    return StationConfig.model_validate(data)
