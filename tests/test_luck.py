import pytest

from saju.bazi import DiscretePillars, compute_pillars, sexagenary_name
from saju.errors import InvalidInputError
from saju.luck import Gender, compute_daeun, compute_saeun, compute_wolun, is_forward

CHART = compute_pillars(1990, 5, 15, 14, 30)   # 庚 (yang) year, 辛巳 month


def test_gender_parse():
    assert Gender.parse("male") is Gender.MALE
    assert Gender.parse("F") is Gender.FEMALE
    assert Gender.parse(Gender.MALE) is Gender.MALE
    with pytest.raises(InvalidInputError) as excinfo:
        Gender.parse("x")
    assert excinfo.value.code == "INVALID_GENDER"


def test_direction():
    assert is_forward(6, Gender.MALE)
    assert not is_forward(6, Gender.FEMALE)
    assert not is_forward(7, Gender.MALE)
    assert is_forward(7, Gender.FEMALE)


def test_daeun_forward_for_yang_male():
    result = compute_daeun(CHART, "m")
    assert result.forward
    assert len(result.periods) == 12
    assert [p.index for p in result.periods[:3]] == [18, 19, 20]
    assert result.periods[0].name == "임오"
    assert result.start_age == result.start_year - 1990 + 1
    assert 1 <= result.start_month <= 12
    ages = [p.age for p in result.periods]
    assert ages == list(range(result.start_age, result.start_age + 120, 10))
    assert result.periods[1].calendar_year - result.periods[0].calendar_year == 10


def test_daeun_backward_for_yang_female():
    result = compute_daeun(CHART, Gender.FEMALE)
    assert not result.forward
    assert [p.index for p in result.periods[:2]] == [16, 15]


def test_daeun_start_from_term_distance():
    # 망종 falls around June 6, three weeks after birth: about seven years
    forward = compute_daeun(CHART, "m")
    assert 1996 <= forward.start_year <= 1998
    # 입하 was nine days before birth: about three years
    backward = compute_daeun(CHART, "f")
    assert 1992 <= backward.start_year <= 1994


def test_daeun_active_period():
    result = compute_daeun(CHART, "m")
    assert result.active(result.start_age - 1) is None
    assert result.active(result.start_age) is result.periods[0]
    assert result.active(result.start_age + 15) is result.periods[1]


def test_daeun_needs_term_data():
    with pytest.raises(InvalidInputError):
        compute_daeun(DiscretePillars.from_indices(6, 17, 16, 19), "m")


def test_saeun():
    years = compute_saeun(CHART, 2024, 2026)
    assert [y.year for y in years] == [2024, 2025, 2026]
    assert [sexagenary_name(y.index) for y in years] == ["갑진", "을사", "병오"]
    assert years[0].age == 35
    assert years[0].to_dict()["pillar"] == "갑진"
    with pytest.raises(InvalidInputError):
        compute_saeun(CHART, 2026, 2024)


def test_wolun():
    months = compute_wolun(CHART, 2024)
    assert len(months) == 12
    assert months[0].term_name == "입춘" and months[0].name == "병인"
    assert months[-1].term_name == "소한" and months[-1].name == "정축"
    assert months[-1].term_instant.year == 2025
    assert [m.month_number for m in months] == list(range(1, 13))
    instants = [m.term_instant for m in months]
    assert instants == sorted(instants)
