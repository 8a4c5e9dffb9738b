"""
Allocation Layer
================

Aggregate-to-unit dispatch:
- engine: pure P split, tiered Q split, target-lock reconciliation
- session: explicit aggregate modes, operator actions, state transitions
"""

from .engine import reconcile_edit, round_half_away, split_active, split_reactive
from .session import (
    Aggregate,
    AggregateMode,
    DispatchSession,
    DispatchState,
    EditUnit,
    Quantity,
    SetAggregate,
    SetEnabled,
    apply_action,
)

__all__ = [
    "reconcile_edit",
    "round_half_away",
    "split_active",
    "split_reactive",
    "Aggregate",
    "AggregateMode",
    "DispatchSession",
    "DispatchState",
    "EditUnit",
    "Quantity",
    "SetAggregate",
    "SetEnabled",
    "apply_action",
]
