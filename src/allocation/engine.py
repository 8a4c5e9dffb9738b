"""
Allocation Engine
=================

Pure functions splitting an aggregate P/Q setpoint across a unit pool and
reconciling a single-unit edit against a locked aggregate.

ROUNDING:
- Every non-residual share is rounded to the nearest integer, halves away
  from zero, so positive and negative targets split symmetrically
- The residual unit takes target - sum(rounded others) and is never rounded
  on its own; integer targets therefore split exactly

TIE-BREAKS:
- Aggregate splits: the first enabled unit (configuration order) absorbs
  the residual
- Single-unit reconciliation: the last enabled peer absorbs the residual
"""

import logging
import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from resources.unit import Unit
from station.models import WeightProfile


logger = logging.getLogger(__name__)

# Reactive tier limits (MVAR, evaluated on |Q|, upper bound inclusive)
REACTIVE_PRIMARY_LIMIT = 5
REACTIVE_SECONDARY_LIMIT = 10


def round_half_away(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Ties do not round upward: -2.5 becomes -3, not -2. A negative target
    therefore splits as the mirror image of the positive one.
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def match_profile(
    profiles: Sequence[WeightProfile],
    enabled: List[Unit]
) -> Optional[WeightProfile]:
    """Return the weight profile declared for exactly this enabled subset."""
    ids = [u.id for u in enabled]
    for profile in profiles:
        if profile.matches(ids):
            return profile
    return None


def normalized_weights(
    units: List[Unit],
    reactive: bool = False,
    profile: Optional[WeightProfile] = None
) -> Dict[str, float]:
    """
    Weights for a subset of units, summing to 1.0.

    Args:
        units: Units sharing the quantity
        reactive: Use reactive weights instead of active weights
        profile: Explicit weights for this subset, if the station declares one

    Returns:
        Dict of unit id to weight
    """
    if not units:
        return {}
    if profile is not None:
        table = profile.reactive_weights if reactive else profile.weights
        return {u.id: float(table[u.id]) for u in units}

    raw = np.array(
        [u.reactive_weight if reactive else u.weight for u in units],
        dtype=float
    )
    total = raw.sum()
    if total <= 0:
        # All-zero weights: share evenly
        raw = np.ones(len(units))
        total = float(len(units))
    return dict(zip([u.id for u in units], (raw / total).tolist()))


def _weighted_residual_split(
    target: float,
    residual_unit: Unit,
    shared: List[Unit],
    weights: Dict[str, float]
) -> Dict[str, float]:
    shares: Dict[str, float] = {}
    for unit in shared:
        shares[unit.id] = round_half_away(target * weights[unit.id])
    shares[residual_unit.id] = target - sum(shares[u.id] for u in shared)
    return shares


def split_active(
    target: float,
    units: List[Unit],
    profiles: Sequence[WeightProfile] = ()
) -> Dict[str, float]:
    """
    Split an aggregate active power target across the enabled units.

    The first enabled unit is the residual unit; every other enabled unit
    gets its rounded weighted share. Disabled units get 0.

    Args:
        target: Aggregate P (MW)
        units: All units of the pool, in configuration order
        profiles: Station weight profiles

    Returns:
        Dict of unit id to P for every unit
    """
    result: Dict[str, float] = {u.id: 0 for u in units}
    enabled = [u for u in units if u.enabled]
    if not enabled:
        return result

    weights = normalized_weights(enabled, reactive=False, profile=match_profile(profiles, enabled))
    result.update(_weighted_residual_split(target, enabled[0], enabled[1:], weights))
    logger.debug("split_active target=%s -> %s", target, result)
    return result


def split_reactive(
    target: float,
    units: List[Unit],
    profiles: Sequence[WeightProfile] = ()
) -> Dict[str, float]:
    """
    Split an aggregate reactive power target using the tiered policy.

    Tiers on |Q| (the sign of Q is carried into every share):
    - |Q| <= 5: primary unit takes all of Q
    - 5 < |Q| <= 10: primary takes 5, the next enabled unit takes the rest
    - |Q| > 10: non-primary units take rounded weighted shares, primary
      takes the residual

    The primary unit is the first enabled unit.

    Args:
        target: Aggregate Q (MVAR), signed
        units: All units of the pool, in configuration order
        profiles: Station weight profiles

    Returns:
        Dict of unit id to Q for every unit
    """
    result: Dict[str, float] = {u.id: 0 for u in units}
    enabled = [u for u in units if u.enabled]
    if not enabled:
        return result

    primary = enabled[0]
    magnitude = abs(target)
    sign = -1 if target < 0 else 1

    if magnitude <= REACTIVE_PRIMARY_LIMIT:
        result[primary.id] = target
    elif magnitude <= REACTIVE_SECONDARY_LIMIT:
        if len(enabled) > 1:
            result[primary.id] = REACTIVE_PRIMARY_LIMIT * sign
            result[enabled[1].id] = target - REACTIVE_PRIMARY_LIMIT * sign
        else:
            result[primary.id] = target
    else:
        weights = normalized_weights(enabled, reactive=True, profile=match_profile(profiles, enabled))
        result.update(_weighted_residual_split(target, primary, enabled[1:], weights))

    logger.debug("split_reactive target=%s -> %s", target, result)
    return result


def reconcile_edit(
    units: List[Unit],
    unit_id: str,
    new_value: float,
    locked_total: float,
    reactive: bool = False
) -> Dict[str, float]:
    """
    Target-lock reconciliation of a single-unit edit.

    The edited unit keeps ``new_value``; the residual
    ``locked_total - new_value`` is spread across the other enabled units in
    proportion to their static weights. All peers but the last get a
    rounded share, the last takes the exact remainder, so the enabled sum
    still equals ``locked_total``.

    With no enabled peer the edited value is applied alone.

    Args:
        units: All units of the pool, in configuration order
        unit_id: Edited unit
        new_value: Value entered for the edited unit
        locked_total: Aggregate to preserve
        reactive: Reconcile Q (reactive weights) instead of P

    Returns:
        Dict of unit id to new value for the edited unit and its peers
    """
    result: Dict[str, float] = {unit_id: new_value}
    peers = [u for u in units if u.enabled and u.id != unit_id]
    if not peers:
        return result

    residual = locked_total - new_value
    weights = normalized_weights(peers, reactive=reactive)
    assigned = 0
    for unit in peers[:-1]:
        share = round_half_away(residual * weights[unit.id])
        result[unit.id] = share
        assigned += share
    result[peers[-1].id] = residual - assigned

    logger.debug(
        "reconcile_edit unit=%s value=%s total=%s -> %s",
        unit_id, new_value, locked_total, result
    )
    return result
