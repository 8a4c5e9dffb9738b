"""
Dispatch Session
================

Operator actions and the state transition that applies them.

apply_action() is a pure function of (state, action) -> new state.
DispatchSession keeps the current state and applies actions strictly in
the order they are issued.

Each quantity (P, Q) carries an explicit aggregate mode:
- AGGREGATE_LOCKED: the aggregate is authoritative; single-unit edits
  redistribute the residual among the other enabled units
- MANUAL_BUILD: units are edited independently; the aggregate is the sum
  of the enabled units

Enabling or disabling a unit re-splits every non-zero aggregate across the
new enabled set, whatever its mode.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Sequence, Union

from resources.unit import ACTIVE, REACTIVE, SOC, Unit, UnitPool
from station.models import StationConfig, WeightProfile

from .engine import reconcile_edit, split_active, split_reactive


logger = logging.getLogger(__name__)


class Quantity(Enum):
    """Distributable quantities, valued by the Unit field they drive."""
    ACTIVE = ACTIVE
    REACTIVE = REACTIVE


class AggregateMode(Enum):
    AGGREGATE_LOCKED = "aggregate_locked"
    MANUAL_BUILD = "manual_build"


@dataclass(frozen=True)
class Aggregate:
    """Operator-facing total for one quantity."""
    value: float = 0
    mode: AggregateMode = AggregateMode.MANUAL_BUILD

    @property
    def locked(self) -> bool:
        return self.mode is AggregateMode.AGGREGATE_LOCKED


@dataclass(frozen=True)
class SetAggregate:
    """Operator sets total P or total Q."""
    quantity: Quantity
    value: float


@dataclass(frozen=True)
class EditUnit:
    """Operator edits one unit's active_mw, reac_mvar or soc."""
    unit_id: str
    field: str
    value: float


@dataclass(frozen=True)
class SetEnabled:
    """Operator enables or disables a unit."""
    unit_id: str
    enabled: bool


Action = Union[SetAggregate, EditUnit, SetEnabled]


@dataclass
class DispatchState:
    pool: UnitPool
    total_p: Aggregate = field(default_factory=Aggregate)
    total_q: Aggregate = field(default_factory=Aggregate)

    @classmethod
    def initial(cls, config: StationConfig) -> "DispatchState":
        return cls(pool=UnitPool.from_config(config))

    def aggregate(self, quantity: Quantity) -> Aggregate:
        return self.total_p if quantity is Quantity.ACTIVE else self.total_q

    def set_aggregate(self, quantity: Quantity, aggregate: Aggregate) -> None:
        if quantity is Quantity.ACTIVE:
            self.total_p = aggregate
        else:
            self.total_q = aggregate

    def pool_total(self, quantity: Quantity) -> float:
        if quantity is Quantity.ACTIVE:
            return self.pool.total_active()
        return self.pool.total_reactive()

    def copy(self) -> "DispatchState":
        return replace(self, pool=self.pool.copy())


def _assign(pool: UnitPool, quantity: Quantity, values: Dict[str, float]) -> None:
    for unit_id, value in values.items():
        pool.set_field(unit_id, quantity.value, value)


def _resplit(state: DispatchState, quantity: Quantity, profiles: Sequence[WeightProfile]) -> None:
    units: List[Unit] = state.pool.units
    target = state.aggregate(quantity).value
    if quantity is Quantity.ACTIVE:
        values = split_active(target, units, profiles)
    else:
        values = split_reactive(target, units, profiles)
    _assign(state.pool, quantity, values)


def _apply_set_aggregate(state: DispatchState, action: SetAggregate, profiles) -> None:
    value = math.floor(action.value)
    mode = AggregateMode.AGGREGATE_LOCKED if value != 0 else AggregateMode.MANUAL_BUILD
    state.set_aggregate(action.quantity, Aggregate(value, mode))
    _resplit(state, action.quantity, profiles)


def _apply_edit_unit(state: DispatchState, action: EditUnit) -> None:
    if action.field == SOC:
        state.pool.set_field(action.unit_id, SOC, action.value)
        return

    quantity = Quantity(action.field)
    unit = state.pool.get(action.unit_id)
    aggregate = state.aggregate(quantity)

    if not unit.enabled:
        # Stored for later; disabled units never take part in a split
        state.pool.set_field(unit.id, quantity.value, action.value)
        return

    if aggregate.locked:
        values = reconcile_edit(
            state.pool.units,
            unit.id,
            action.value,
            aggregate.value,
            reactive=quantity is Quantity.REACTIVE
        )
        _assign(state.pool, quantity, values)
        if len(values) == 1:
            # No enabled peer absorbed the residual
            state.set_aggregate(quantity, replace(aggregate, value=state.pool_total(quantity)))
    else:
        state.pool.set_field(unit.id, quantity.value, action.value)
        state.set_aggregate(quantity, replace(aggregate, value=state.pool_total(quantity)))


def _apply_set_enabled(state: DispatchState, action: SetEnabled, profiles) -> None:
    state.pool.set_enabled(action.unit_id, action.enabled)
    for quantity in Quantity:
        aggregate = state.aggregate(quantity)
        if aggregate.locked or aggregate.value != 0:
            _resplit(state, quantity, profiles)
        else:
            # Nothing to carry over; stored unit values stay as they are
            state.set_aggregate(quantity, replace(aggregate, value=state.pool_total(quantity)))


def apply_action(
    state: DispatchState,
    action: Action,
    profiles: Sequence[WeightProfile] = ()
) -> DispatchState:
    """
    Apply one operator action.

    Args:
        state: Current state (left untouched)
        action: SetAggregate, EditUnit or SetEnabled
        profiles: Station weight profiles for aggregate splits

    Returns:
        New DispatchState
    """
    new_state = state.copy()
    if isinstance(action, SetAggregate):
        _apply_set_aggregate(new_state, action, profiles)
    elif isinstance(action, EditUnit):
        _apply_edit_unit(new_state, action)
    elif isinstance(action, SetEnabled):
        _apply_set_enabled(new_state, action, profiles)
    else:
        raise TypeError(f"Unsupported action: {action!r}")
    logger.debug("applied %s -> P=%s Q=%s", action, new_state.total_p, new_state.total_q)
    return new_state


class DispatchSession:
    """
    Holds the live pool and aggregates for one station.

    The session is the only writer of its state; every operator action goes
    through apply().
    """

    def __init__(self, config: StationConfig):
        self.config = config
        self.state = DispatchState.initial(config)

    def apply(self, action: Action) -> DispatchState:
        self.state = apply_action(self.state, action, self.config.weight_profiles)
        return self.state

    @property
    def pool(self) -> UnitPool:
        return self.state.pool

    @property
    def units(self) -> List[Unit]:
        return self.state.pool.units

    @property
    def total_p(self) -> float:
        return self.state.total_p.value

    @property
    def total_q(self) -> float:
        return self.state.total_q.value

    def set_total_p(self, value: float) -> DispatchState:
        return self.apply(SetAggregate(Quantity.ACTIVE, value))

    def set_total_q(self, value: float) -> DispatchState:
        return self.apply(SetAggregate(Quantity.REACTIVE, value))

    def edit_unit(self, unit_id: str, field: str, value: float) -> DispatchState:
        return self.apply(EditUnit(unit_id, field, value))

    def set_enabled(self, unit_id: str, enabled: bool) -> DispatchState:
        return self.apply(SetEnabled(unit_id, enabled))

    def toggle(self, unit_id: str) -> DispatchState:
        return self.set_enabled(unit_id, not self.pool.get(unit_id).enabled)
