"""
Operator input parsing.

Text typed into a setpoint field stays transient until it parses; only
parsed values reach the dispatch session. Nothing here raises.
"""

from __future__ import annotations

import math
import re
from typing import Optional

_INTEGER = re.compile(r"^[+-]?\d+$")


def parse_setpoint(text: Optional[str]) -> Optional[int]:
    """Integer setpoint, or None while the text is not a valid integer."""
    if text is None:
        return None
    text = text.strip()
    if not _INTEGER.match(text):
        return None
    return int(text)


def resolve_setpoint(text: Optional[str]) -> int:
    """Value committed on focus loss: the parsed integer, else 0."""
    value = parse_setpoint(text)
    return 0 if value is None else value


def parse_soc(text: Optional[str]) -> Optional[float]:
    if text is None:
        return None
    try:
        value = float(text.strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value
