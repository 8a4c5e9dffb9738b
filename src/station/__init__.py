"""
Station Configuration
=====================

Fixed configuration data for a dispatch station:
- Unit identities, display names, badge colors
- Static P/Q weights and per-subset weight profiles
- Ledger storage location and commit timezone
"""

from .models import StationConfig, StorageSpec, UnitSpec, WeightProfile
from .loader import default_station, load_station_file
from .logging_setup import init_logging

__all__ = [
    "StationConfig",
    "StorageSpec",
    "UnitSpec",
    "WeightProfile",
    "default_station",
    "load_station_file",
    "init_logging",
]
