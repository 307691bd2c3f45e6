from datetime import datetime, timedelta

import pytest

from saju.errors import InvalidInputError, TermNotFoundError
from saju.solar_terms import SOLAR_TERMS, SolarTermCache, SolarTermResolver


@pytest.mark.parametrize("year", [1900, 1901, 1937, 1966, 1984, 2000, 2021, 2024, 2057, 2099, 2100])
def test_start_of_spring_falls_feb_3_to_5(year):
    instant = SolarTermResolver().start_of_spring(year)
    assert instant.month == 2
    assert 3 <= instant.day <= 5


def test_start_of_spring_2024():
    instant = SolarTermResolver().find(2024, "입춘")
    assert abs(instant - datetime(2024, 2, 4, 17, 27)) < timedelta(minutes=30)


def test_terms_are_fifteen_degrees_apart():
    longitudes = sorted(t.longitude for t in SOLAR_TERMS)
    assert longitudes == list(range(0, 360, 15))
    assert sum(t.major for t in SOLAR_TERMS) == 12


def test_find_is_cached():
    cache = SolarTermCache()
    resolver = SolarTermResolver(cache=cache)
    first = resolver.find(2024, "하지")
    assert (2024, "하지") in cache
    assert len(cache) == 1
    assert resolver.find(2024, "하지") is first
    assert len(cache) == 1


def test_custom_target_cached_separately():
    cache = SolarTermCache()
    resolver = SolarTermResolver(cache=cache)
    solstice = resolver.find(2024, "하지")
    shifted = resolver.find(2024, "하지", target_longitude=91.0)
    assert (2024, "하지", 91.0) in cache
    assert len(cache) == 2
    assert 0.9 < (shifted - solstice).total_seconds() / 86400 < 1.1
    assert resolver.find(2024, "하지", target_longitude=90) is solstice


def test_cache_shared_between_resolvers():
    cache = SolarTermCache()
    SolarTermResolver(cache=cache).find(2010, "동지")
    calls = []

    def counting(jd):
        calls.append(jd)
        return 0.0

    assert SolarTermResolver(cache=cache, longitude_fn=counting).find(2010, "동지").year == 2010
    assert calls == []


def test_cache_put_keeps_first_value():
    cache = SolarTermCache()
    first = datetime(2020, 1, 1)
    assert cache.put(2020, "소한", first) is first
    assert cache.put(2020, "소한", datetime(2020, 1, 2)) is first
    cache.clear()
    assert len(cache) == 0


def test_unknown_term_rejected():
    with pytest.raises(InvalidInputError):
        SolarTermResolver().find(2024, "설날")


def test_no_crossing_raises_term_not_found():
    resolver = SolarTermResolver(longitude_fn=lambda jd: 100.0)
    with pytest.raises(TermNotFoundError) as excinfo:
        resolver.find(2024, "입춘")
    assert excinfo.value.details["term"] == "입춘"
    assert excinfo.value.code == "TERM_NOT_FOUND"


def test_month_boundaries_span_one_saju_year():
    boundaries = SolarTermResolver().month_boundaries(2024)
    assert len(boundaries) == 13
    assert [b.month_number for b in boundaries[:12]] == list(range(1, 13))
    assert boundaries[0].name == boundaries[-1].name == "입춘"
    assert boundaries[0].instant.year == 2024
    assert boundaries[-1].instant.year == 2025
    assert boundaries[11].name == "소한" and boundaries[11].instant.year == 2025
    instants = [b.instant for b in boundaries]
    assert instants == sorted(instants)


def test_year_terms_chronological():
    terms = SolarTermResolver().year_terms(2023)
    assert len(terms) == 24
    assert terms[0].name == "소한"
    assert terms[-1].name == "동지"
    assert all(t.instant.year == 2023 for t in terms)
