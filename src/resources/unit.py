"""
Dispatch Units
==============

Models the controllable generating units of a station with:
- Fixed identity and static P/Q weights from station configuration
- Live active/reactive setpoints
- Free-standing state of charge (never redistributed)
- Enable flag removing a unit from distribution
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterator, List

from station.models import StationConfig


SOC_MIN = 0.0
SOC_MAX = 100.0

ACTIVE = "active_mw"
REACTIVE = "reac_mvar"
SOC = "soc"
EDITABLE_FIELDS = (ACTIVE, REACTIVE, SOC)


class UnknownUnitError(KeyError):
    """Raised when a unit id is not part of the pool."""


def clamp_soc(value: float) -> float:
    """Clamp a state of charge percentage to [0, 100]."""
    return min(SOC_MAX, max(SOC_MIN, float(value)))


@dataclass
class Unit:
    """
    A controllable generating unit.

    Attributes:
        id: Fixed unit identifier
        name: Display name
        badge_color: UI badge color
        weight: Static share of active power
        reactive_weight: Static share of reactive power above the tier thresholds
        active_mw: Active power setpoint (MW)
        reac_mvar: Reactive power setpoint (MVAR), signed
        soc: State of charge (%)
        enabled: False removes the unit from distribution
    """
    id: str
    name: str
    badge_color: str
    weight: float
    reactive_weight: float
    active_mw: float = 0
    reac_mvar: float = 0
    soc: float = 0.0
    enabled: bool = True

    def __post_init__(self):
        self.soc = clamp_soc(self.soc)

    def snapshot(self) -> Dict[str, float]:
        """Ledger snapshot of this unit."""
        return {"active": self.active_mw, "reac": self.reac_mvar, "soc": self.soc}


class UnitPool:
    """
    The fixed set of units at a station, one canonical instance per id.

    Enabling or disabling a unit never clears its stored P/Q.
    """

    def __init__(self, units: List[Unit]):
        ids = [u.id for u in units]
        if len(set(ids)) != len(ids):
            raise ValueError("unit ids must be unique")
        self._units: Dict[str, Unit] = {u.id: u for u in units}

    @classmethod
    def from_config(cls, config: StationConfig) -> "UnitPool":
        return cls([
            Unit(
                id=spec.id,
                name=spec.name,
                badge_color=spec.badge_color,
                weight=float(spec.weight),
                reactive_weight=float(spec.reactive_weight),
            )
            for spec in config.units
        ])

    @property
    def units(self) -> List[Unit]:
        return list(self._units.values())

    @property
    def ids(self) -> List[str]:
        return list(self._units)

    def __iter__(self) -> Iterator[Unit]:
        return iter(self._units.values())

    def __len__(self) -> int:
        return len(self._units)

    def get(self, unit_id: str) -> Unit:
        try:
            return self._units[unit_id]
        except KeyError:
            raise UnknownUnitError(unit_id) from None

    def enabled_units(self) -> List[Unit]:
        return [u for u in self._units.values() if u.enabled]

    def set_enabled(self, unit_id: str, enabled: bool) -> None:
        self.get(unit_id).enabled = bool(enabled)

    def set_field(self, unit_id: str, field: str, value: float) -> None:
        """
        Set a single editable field on a unit.

        State of charge is clamped to [0, 100] rather than rejected.
        """
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown unit field: {field}")
        unit = self.get(unit_id)
        if field == SOC:
            value = clamp_soc(value)
        setattr(unit, field, value)

    def total_active(self) -> float:
        return sum(u.active_mw for u in self.enabled_units())

    def total_reactive(self) -> float:
        return sum(u.reac_mvar for u in self.enabled_units())

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        """Per-unit {active, reac, soc} for every unit, enabled or not."""
        return {u.id: u.snapshot() for u in self._units.values()}

    def copy(self) -> "UnitPool":
        return UnitPool([replace(u) for u in self._units.values()])
