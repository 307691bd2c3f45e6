from datetime import date, timedelta

import pytest

from saju.bazi import (DiscretePillars, TenGod, TenGodGroup, TwelveStage, compute_pillars, day_index,
                       hour_branch, hour_index, month_index, sexagenary_index, sexagenary_name,
                       ten_god, twelve_stage, twelve_stage_matrix, year_index)
from saju.errors import IndexOutOfRangeError


def test_sexagenary_index():
    assert sexagenary_index(0, 0) == 0
    assert sexagenary_index(9, 11) == 59
    assert sexagenary_index(6, 6) == 6
    with pytest.raises(IndexOutOfRangeError):
        sexagenary_index(0, 1)


def test_sexagenary_names():
    assert sexagenary_name(0) == "갑자"
    assert sexagenary_name(0, hanja=True) == "甲子"
    assert sexagenary_name(59) == "계해"


def test_day_index_known_dates():
    assert day_index(date(1900, 1, 1)) == 10
    assert sexagenary_name(day_index(date(2000, 1, 1))) == "무오"


def test_day_period_sixty():
    start = date(1987, 3, 14)
    for offset in range(0, 400, 37):
        d = start + timedelta(days=offset)
        assert day_index(d + timedelta(days=60)) == day_index(d)
        assert (day_index(d + timedelta(days=1)) - day_index(d)) % 60 == 1


def test_year_index():
    assert year_index(1984) == 0
    assert sexagenary_name(year_index(2024)) == "갑진"
    assert sexagenary_name(year_index(1990)) == "경오"


def test_hour_branch():
    assert hour_branch(23, 0) == 0
    assert hour_branch(0, 59) == 0
    assert hour_branch(1, 0) == 1
    assert hour_branch(14, 30) == 7
    assert hour_branch(22, 59) == 11


def test_five_rats_and_five_tigers():
    assert sexagenary_name(hour_index(0, 0)) == "갑자"
    assert sexagenary_name(hour_index(1, 0)) == "병자"
    assert sexagenary_name(month_index(0, 1)) == "병인"
    assert sexagenary_name(month_index(1, 1)) == "무인"


def test_regression_chart():
    chart = compute_pillars(1990, 5, 15, 14, 30)
    assert chart.indices() == {"hour": 19, "day": 16, "month": 17, "year": 6}
    assert [chart.pillar(p).name for p in ("year", "month", "day", "hour")] == ["경오", "신사", "경진", "계미"]
    assert chart.saju_year == 1990
    assert chart.month_number == 4
    assert chart.current_term.name == "입하"
    assert chart.next_term.name == "망종"
    assert chart.current_term.instant <= chart.birth < chart.next_term.instant


def test_day_pillar_ignores_time_except_rollover():
    noon = compute_pillars(1990, 5, 15, 12, 0)
    late = compute_pillars(1990, 5, 15, 23, 10)
    early = compute_pillars(1990, 5, 16, 0, 30)
    assert noon.day.index == compute_pillars(1990, 5, 15, 1, 0).day.index
    assert late.day.index == (noon.day.index + 1) % 60
    assert early.day.index == late.day.index
    assert late.hour.index % 12 == 0


def test_hour_absent():
    chart = compute_pillars(1990, 5, 15)
    assert chart.hour is None
    assert not chart.has_time
    assert chart.positions == ["day", "month", "year"]
    assert "hour" not in chart.readings
    assert "hour" not in chart.to_dict()["pillars"]


def test_before_start_of_spring_is_previous_year():
    chart = compute_pillars(1990, 2, 1, 12, 0)
    assert chart.saju_year == 1989
    assert chart.year.name == "기사"
    assert chart.month_number == 12
    assert chart.month.name == "정축"


def test_ten_gods():
    assert ten_god(0, 0) is TenGod.BIGYEON
    assert ten_god(0, 1) is TenGod.GEOPJAE
    assert ten_god(0, 2) is TenGod.SIKSIN
    assert ten_god(0, 4) is TenGod.PYEONJAE
    assert ten_god(0, 6) is TenGod.PYEONGWAN
    assert ten_god(0, 7) is TenGod.JEONGGWAN
    assert ten_god(0, 9) is TenGod.JEONGIN
    assert TenGod.JEONGIN.group is TenGodGroup.RESOURCE
    assert TenGod.GEOPJAE.group is TenGodGroup.PEERS


def test_twelve_stages():
    assert twelve_stage(0, 11) is TwelveStage.JANGSAENG
    assert twelve_stage(0, 3) is TwelveStage.JEWANG
    assert twelve_stage(1, 6) is TwelveStage.JANGSAENG
    assert twelve_stage(1, 2) is TwelveStage.JEWANG
    assert TwelveStage.JEWANG.phase == "peak"
    assert TwelveStage.MYO.phase == "decline"


def test_readings():
    chart = compute_pillars(1990, 5, 15, 14, 30)
    day = chart.readings["day"]
    assert day.stem_god is None
    assert chart.readings["year"].stem_god is TenGod.BIGYEON
    assert sum(h.ratio for h in day.hidden) == 10


def test_stage_matrix():
    chart = DiscretePillars.from_indices(6, 17, 16, 19)
    matrix = twelve_stage_matrix(chart)
    assert matrix.positions == ("year", "month", "day", "hour")
    assert len(matrix.cells) == 4 and all(len(row) == 4 for row in matrix.cells)
    for i, p in enumerate(matrix.positions):
        idx = chart.pillar(p).index
        assert matrix.diagonal[i].stage is twelve_stage(idx % 10, idx % 12)
    assert matrix.average_energy == pytest.approx(matrix.total_energy / 16)

    no_time = twelve_stage_matrix(DiscretePillars.from_indices(6, 17, 16))
    assert len(no_time.cells) == 3
