"""
Resource Models
===============

Unit definitions for a dispatch station:
- Unit: identity, weights, P/Q setpoints, state of charge, enable flag
- UnitPool: the fixed set of units with lookup and mutators
"""

from .unit import Unit, UnitPool, UnknownUnitError, clamp_soc

__all__ = ["Unit", "UnitPool", "UnknownUnitError", "clamp_soc"]
