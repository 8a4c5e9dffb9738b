"""Pytest configuration.

Sources live under src/ as sibling packages (station, resources, ...).
Both the repository root (runner.py) and src/ are put on sys.path so the
tests work without installing the project.
"""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from itertools import count

import pytest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
for path in (SRC, ROOT):
    if path not in sys.path:
        sys.path.insert(0, path)


from allocation.session import DispatchSession  # noqa: E402
from station.loader import default_station  # noqa: E402


COMMIT_TIME = datetime(2026, 10, 19, 8, 30, 5, tzinfo=timezone.utc)


@pytest.fixture
def station():
    return default_station()


@pytest.fixture
def session(station):
    return DispatchSession(station)


@pytest.fixture
def clock():
    return lambda: COMMIT_TIME


@pytest.fixture
def id_factory():
    counter = count(1)
    return lambda: f"entry-{next(counter)}"
