import json

import pytest

from saju.birth_moment import BirthMoment
from saju.errors import InvalidInputError
from saju.luck import Gender

REGRESSION = BirthMoment(1990, 5, 15, 14, 30, "m", 127.0)


@pytest.mark.parametrize("args, code", [
    ((1899, 12, 31, 12, 0), "INVALID_DATE"),
    ((2101, 1, 1, 12, 0), "INVALID_DATE"),
    ((1990, 13, 1, 12, 0), "INVALID_DATE"),
    ((1990, 2, 29, 12, 0), "INVALID_DATE"),
    ((1990, 5, 15, 24, 0), "INVALID_TIME"),
    ((1990, 5, 15, 12, 60), "INVALID_TIME"),
    ((1990, 5, 15, None, 30), "INVALID_TIME"),
])
def test_invalid_input_rejected(args, code):
    with pytest.raises(InvalidInputError) as excinfo:
        BirthMoment(*args, gender="m")
    assert excinfo.value.code == code


def test_bad_gender_and_longitude():
    with pytest.raises(InvalidInputError):
        BirthMoment(1990, 5, 15, gender="unknown")
    with pytest.raises(InvalidInputError):
        BirthMoment(1990, 5, 15, gender="m", longitude=200.0)


def test_leap_day_accepted():
    assert BirthMoment(2000, 2, 29, gender="f").gender is Gender.FEMALE


def test_derived_data_is_cached():
    moment = BirthMoment(1990, 5, 15, 14, 30, "m")
    assert moment.discrete is moment.discrete
    assert moment.profile is moment.profile
    assert moment.daeun is moment.daeun


def test_regression_scenario():
    chart = REGRESSION.discrete
    assert chart.indices() == {"hour": 19, "day": 16, "month": 17, "year": 6}
    snapshot = REGRESSION.continuous
    assert snapshot.angles["hour"] == 217.5
    assert snapshot.angles["day"] == pytest.approx(119.375)
    assert snapshot.angles["month"] == pytest.approx(144.1003, abs=1e-3)
    assert snapshot.angles["year"] == pytest.approx(173.2584, abs=1e-3)
    profile = REGRESSION.profile
    # 巳午未 south directional combine over hour, month and year; no clashes
    assert [i.kind for i in profile.interactions] == ["triple-combine"]
    assert profile.interactions[0].source == "hour+month+year"
    assert profile.disruption == 0.0
    assert profile.oheng_percent.values() == pytest.approx([7.0, 45.0, 22.0, 19.0, 7.0])
    assert REGRESSION.daeun.forward


def test_hour_absent_throughout():
    moment = BirthMoment(1990, 5, 15, gender="m")
    assert not moment.has_time
    assert moment.discrete.hour is None
    assert "hour" not in moment.continuous.pillars
    assert "hour" not in {s.position for s in moment.profile.slots}
    assert moment.matrix.positions == ("year", "month", "day")
    assert all("hour" not in r.positions for r in moment.relations)


def test_corrected_moment():
    corrected = REGRESSION.corrected()
    assert (corrected.hour, corrected.minute) == (13, 58)
    assert corrected.gender is REGRESSION.gender
    untimed = BirthMoment(1990, 5, 15, gender="m")
    assert untimed.corrected() is untimed


def test_chart_data_is_json_ready():
    data = REGRESSION.chart_data()
    assert set(data) >= {"discrete", "continuous", "matrix", "profile", "strength", "daeun", "curves"}
    assert len(data["curves"]["angles"]) == 360
    json.dumps(data, ensure_ascii=False)


def test_views():
    assert len(REGRESSION.saeun(2020, 2029)) == 10
    assert len(REGRESSION.wolun(2024)) == 12
    assert len(REGRESSION.time_series(2020, 2022).points) == 3
    assert len(REGRESSION.time_series(2020, 2020, continuous=True).points) == 1
    assert len(REGRESSION.monthly_detail(2024)) == 12
