from datetime import datetime

import pytest

from saju.solar_time import apply_longitude_correction, longitude_correction, standard_meridian_for


def test_longitude_correction():
    assert longitude_correction(127.0) == pytest.approx(-32.0)
    assert longitude_correction(135.0) == 0.0
    assert longitude_correction(-74.0, -75.0) == pytest.approx(4.0)


def test_apply_correction_seoul():
    result = apply_longitude_correction(1990, 5, 15, 14, 30, 126.98)
    assert result.corrected == datetime(1990, 5, 15, 13, 58)
    assert result.correction_minutes == -32
    assert result.to_dict()["corrected"] == "1990-05-15 13:58"


def test_apply_correction_rolls_the_date():
    result = apply_longitude_correction(2000, 1, 1, 0, 10, 127.0)
    assert result.corrected == datetime(1999, 12, 31, 23, 38)
    forward = apply_longitude_correction(2000, 2, 28, 23, 59, 140.0)
    assert forward.corrected == datetime(2000, 2, 29, 0, 19)


def test_standard_meridian_lookup():
    assert standard_meridian_for(37.5665, 126.978, datetime(1990, 5, 15, 14, 30)) == pytest.approx(135.0)
    # Daylight saving time is stripped back to the zone's standard meridian
    assert standard_meridian_for(40.7128, -74.006, datetime(2020, 7, 1, 12, 0)) == pytest.approx(-75.0)
    assert standard_meridian_for(40.7128, -74.006, datetime(2020, 1, 1, 12, 0)) == pytest.approx(-75.0)
