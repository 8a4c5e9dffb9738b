from __future__ import annotations

from typing import Dict, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, confloat, field_validator, model_validator


WEIGHT_TOLERANCE = 1e-6
DEFAULT_STORAGE_KEY = "GRID_DISPATCH_HISTORY_DB_V2"


class UnitSpec(BaseModel):
    id: str = Field(..., min_length=1, description="Fixed unit identifier (e.g. SWG01).")
    name: str = Field(..., description="Display name.")
    badge_color: str = Field("#64748b", description="Badge color used by the UI.")
    weight: confloat(ge=0, le=1) = Field(..., description="Static share of active power (P).")
    reactive_weight: confloat(ge=0, le=1) = Field(
        ..., description="Static share of reactive power (Q) above the tier thresholds."
    )


class WeightProfile(BaseModel):
    """Explicit weights used when exactly ``units`` are enabled."""

    units: List[str] = Field(..., min_length=1, description="Enabled subset this profile applies to.")
    weights: Dict[str, confloat(ge=0, le=1)] = Field(..., description="P weight per unit id.")
    reactive_weights: Dict[str, confloat(ge=0, le=1)] = Field(..., description="Q weight per unit id.")

    @model_validator(mode="after")
    def _weights_cover_subset(self) -> "WeightProfile":
        subset = set(self.units)
        for label, table in (("weights", self.weights), ("reactive_weights", self.reactive_weights)):
            if set(table) != subset:
                raise ValueError(f"{label} must name exactly the profile units {sorted(subset)}")
            if abs(sum(table.values()) - 1.0) > WEIGHT_TOLERANCE:
                raise ValueError(f"{label} of profile {sorted(subset)} must sum to 1.0")
        return self

    def matches(self, enabled_ids: List[str]) -> bool:
        return set(self.units) == set(enabled_ids)


class StorageSpec(BaseModel):
    path: str = Field("dispatch_history.json", description="JSON blob file holding the ledger.")
    key: str = Field(DEFAULT_STORAGE_KEY, description="Key the ledger is stored under.")


class StationConfig(BaseModel):
    name: str = Field("GRID_DISPATCH_CENTER", description="Station name shown in reports.")
    units: List[UnitSpec] = Field(..., min_length=1)
    weight_profiles: List[WeightProfile] = Field(default_factory=list)
    storage: StorageSpec = Field(default_factory=StorageSpec)
    timezone: str = Field("UTC", description="IANA timezone used for commit timestamps.")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @model_validator(mode="after")
    def _check_units(self) -> "StationConfig":
        ids = [u.id for u in self.units]
        if len(set(ids)) != len(ids):
            raise ValueError("unit ids must be unique")
        for label in ("weight", "reactive_weight"):
            s = sum(float(getattr(u, label)) for u in self.units)
            if abs(s - 1.0) > WEIGHT_TOLERANCE:
                raise ValueError(f"unit {label}s must sum to 1.0 (got {s:.6f})")
        known = set(ids)
        for profile in self.weight_profiles:
            unknown = set(profile.units) - known
            if unknown:
                raise ValueError(f"weight profile references unknown units {sorted(unknown)}")
        return self

    @property
    def unit_ids(self) -> List[str]:
        return [u.id for u in self.units]

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
