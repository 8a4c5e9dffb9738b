from __future__ import annotations

from typing import Dict, List, Mapping

from pydantic import BaseModel, Field, TypeAdapter


class UnitSnapshot(BaseModel):
    active: float = Field(0, description="Active power at commit (MW).")
    reac: float = Field(0, description="Reactive power at commit (MVAR).")
    soc: float = Field(0, description="State of charge at commit (%).")


class DispatchEntry(BaseModel):
    id: str = Field(..., min_length=1, description="Unique entry id.")
    timestamp: str = Field(..., description="Commit time, YYYY-MM-DD HH:MM:SS.")
    units: Dict[str, UnitSnapshot] = Field(default_factory=dict)

    def to_record(self) -> Dict:
        """Plain dict in the persisted/exported layout."""
        return self.model_dump(mode="json")


ENTRY_LIST = TypeAdapter(List[DispatchEntry])


def snapshot_from_mapping(snapshot: Mapping[str, Mapping[str, float]]) -> Dict[str, UnitSnapshot]:
    """Coerce a {unit_id: {active, reac, soc}} mapping into UnitSnapshots."""
    return {
        unit_id: values if isinstance(values, UnitSnapshot) else UnitSnapshot.model_validate(dict(values))
        for unit_id, values in snapshot.items()
    }
