import pytest
import yaml

from saju.config import load_weights, parse_weights
from saju.errors import InvalidInputError


def test_packaged_weights():
    w = load_weights()
    assert w.natal_branch == {"year": 15, "month": 30, "day": 20, "hour": 15}
    assert sum(w.natal_stem.values()) + sum(w.natal_branch.values()) == pytest.approx(100)
    assert sum(w.snapshot.values()) == pytest.approx(1.0)
    assert w.damping == pytest.approx(0.35)
    assert w.disruption.cap == pytest.approx(0.04)
    assert w.overlay_branch["daeun"] > w.overlay_branch["saeun"] > w.overlay_branch["wolun"]


def test_round_trip_through_file(tmp_path):
    data = load_weights().to_dict()
    data["overlay"]["damping"] = 0.5
    path = tmp_path / "weights.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    assert load_weights(path).damping == pytest.approx(0.5)


def test_malformed_weights_rejected():
    with pytest.raises(InvalidInputError) as excinfo:
        parse_weights({})
    assert excinfo.value.code == "INVALID_CONFIG"


def test_missing_key_rejected():
    data = load_weights().to_dict()
    del data["snapshot"]["stems"]
    with pytest.raises(InvalidInputError) as excinfo:
        parse_weights(data)
    assert excinfo.value.details["missing"] == "stems"


def test_empty_file_rejected(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    with pytest.raises(InvalidInputError):
        load_weights(path)
