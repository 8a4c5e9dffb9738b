import json

import pytest
from pydantic import ValidationError

from station.loader import REFERENCE_STATION, default_station, load_station_file
from station.models import StationConfig


def test_reference_station_units():
    config = default_station()
    assert config.unit_ids == ["SWG01", "SWG02", "SWG03"]
    assert [u.weight for u in config.units] == [0.46, 0.27, 0.27]
    assert [u.reactive_weight for u in config.units] == [0.50, 0.25, 0.25]
    assert config.storage.key == "GRID_DISPATCH_HISTORY_DB_V2"


def test_profile_match_ignores_order():
    profile = default_station().weight_profiles[0]
    assert profile.matches(["SWG02", "SWG01"])
    assert not profile.matches(["SWG01", "SWG03"])
    assert not profile.matches(["SWG01"])


def test_example_station_file_matches_reference():
    from pathlib import Path

    path = Path(__file__).parent.parent / "examples" / "station_swg.json"
    config = load_station_file(str(path))
    assert config.unit_ids == default_station().unit_ids
    assert config.weight_profiles[0].units == ["SWG01", "SWG02"]


def test_missing_station_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_station_file(str(tmp_path / "nope.json"))


def test_weights_must_sum_to_one():
    data = json.loads(json.dumps(REFERENCE_STATION))
    data["units"][0]["weight"] = 0.9
    with pytest.raises(ValidationError):
        StationConfig.model_validate(data)


def test_duplicate_unit_ids_rejected():
    data = json.loads(json.dumps(REFERENCE_STATION))
    data["units"][2]["id"] = "SWG01"
    with pytest.raises(ValidationError):
        StationConfig.model_validate(data)


def test_profile_must_reference_known_units():
    data = json.loads(json.dumps(REFERENCE_STATION))
    data["weight_profiles"][0]["units"] = ["SWG01", "SWG09"]
    data["weight_profiles"][0]["weights"] = {"SWG01": 0.5, "SWG09": 0.5}
    data["weight_profiles"][0]["reactive_weights"] = {"SWG01": 0.5, "SWG09": 0.5}
    with pytest.raises(ValidationError):
        StationConfig.model_validate(data)


def test_profile_weights_must_cover_subset():
    data = json.loads(json.dumps(REFERENCE_STATION))
    data["weight_profiles"][0]["weights"] = {"SWG01": 1.0}
    with pytest.raises(ValidationError):
        StationConfig.model_validate(data)


def test_unknown_timezone_rejected():
    data = json.loads(json.dumps(REFERENCE_STATION))
    data["timezone"] = "Mars/Olympus_Mons"
    with pytest.raises(ValidationError):
        StationConfig.model_validate(data)
