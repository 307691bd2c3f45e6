from datetime import datetime

import pytest

from saju.bazi import compute_pillars
from saju.branches import BRANCH_PROFILES
from saju.continuous import (STRATEGIES, CosineFalloffStrategy, FourierStrategy, PairwiseStrategy,
                             blend_factor, blended_profiles, boundary_blend, compute_continuous_angles,
                             cycle_fraction, day_fraction, fraction_to_angle, get_strategy, hour_day_blend,
                             sample_curves, span_fraction, time_to_hour_angle)
from saju.errors import InvalidInputError


@pytest.mark.parametrize("name", sorted(STRATEGIES))
def test_exact_at_branch_centres(name):
    strategy = get_strategy(name)
    for profile in BRANCH_PROFILES:
        ratios = strategy.ratios(profile.angle)
        for got, want in zip(ratios.values(), profile.ratios.values()):
            assert got == pytest.approx(want, abs=1e-9)


@pytest.mark.parametrize("strategy", [PairwiseStrategy(), CosineFalloffStrategy(), FourierStrategy()])
def test_ratios_are_distributions(strategy):
    for angle in range(0, 360, 7):
        ratios = strategy.ratios(angle + 0.25)
        assert ratios.total() == pytest.approx(1.0)
        assert min(ratios.values()) >= 0.0


def test_pairwise_is_local():
    # Between 子 and 丑 nothing of 寅's wood or fire can appear
    ratios = PairwiseStrategy().ratios(17.0)
    assert ratios.wood == 0.0
    assert ratios.fire == 0.0


def test_unknown_strategy():
    with pytest.raises(InvalidInputError):
        get_strategy("spline")


def test_sample_curves():
    curves = sample_curves(FourierStrategy(), samples=36)
    assert curves["angles"][0] == 0.0
    assert curves["angles"][1] == pytest.approx(10.0)
    assert len(curves["water"]) == 36
    totals = sum(curves[e] for e in ("wood", "fire", "earth", "metal", "water"))
    assert totals == pytest.approx([1.0] * 36)


def test_angle_converters():
    assert time_to_hour_angle(0, 0) == 0.0
    assert time_to_hour_angle(14, 30) == 217.5
    assert time_to_hour_angle(23, 0) == 345.0
    for branch in range(12):
        assert fraction_to_angle(branch, 0.5) == pytest.approx(branch * 30.0)
    assert fraction_to_angle(0, 0.0) == pytest.approx(345.0)
    assert day_fraction(3, 0) == 0.0
    assert day_fraction(9, 0) == pytest.approx(0.25)
    assert day_fraction(15, 0) == pytest.approx(0.5)
    assert day_fraction(23, 0) == pytest.approx(300 / 360)
    assert cycle_fraction(45.0) == 0.0
    assert cycle_fraction(30.0) == pytest.approx(345 / 360)


def test_span_fraction():
    start, end = datetime(2024, 1, 1), datetime(2024, 1, 11)
    assert span_fraction(datetime(2024, 1, 6), start, end) == pytest.approx(0.5)
    assert span_fraction(datetime(2023, 12, 1), start, end) == 0.0
    assert span_fraction(start, start, start) == 0.5


def test_blends():
    assert blend_factor(90.0, 90.0) == pytest.approx(0.5)
    assert blend_factor(60.0, 90.0) == 0.0
    assert hour_day_blend(23, 30).blend == pytest.approx(0.25)
    assert hour_day_blend(0, 0).needs_blend
    assert not hour_day_blend(12, 0).needs_blend
    start, end = datetime(2024, 1, 1), datetime(2024, 1, 11)
    assert boundary_blend(datetime(2024, 1, 6), start, end).phase == "stable"
    entering = boundary_blend(datetime(2024, 1, 1, 6), start, end)
    assert entering.phase == "entering" and entering.blend_prev > 0
    assert boundary_blend(datetime(2024, 1, 10, 20), start, end).phase == "exiting"


def test_snapshot_regression():
    chart = compute_pillars(1990, 5, 15, 14, 30)
    snapshot = compute_continuous_angles(chart, 14, 30)
    assert snapshot.strategy == "pairwise"
    assert set(snapshot.pillars) == {"hour", "day", "month", "year"}
    # 입하 1990-05-06 03:32, 망종 1990-06-06 07:45 KST
    assert snapshot.angles["hour"] == 217.5
    assert snapshot.angles["day"] == pytest.approx(119.375)
    assert snapshot.angles["month"] == pytest.approx(144.1003, abs=1e-3)
    assert snapshot.angles["year"] == pytest.approx(173.2584, abs=1e-3)
    assert snapshot.combined.total() == pytest.approx(100.0)
    assert snapshot.day_phase is not None
    assert set(blended_profiles(snapshot)) == set(snapshot.pillars)


def test_snapshot_without_time():
    chart = compute_pillars(1990, 5, 15)
    snapshot = compute_continuous_angles(chart)
    assert "hour" not in snapshot.pillars
    assert snapshot.angles["day"] == pytest.approx((chart.day.index % 12) * 30.0)
    assert snapshot.day_phase is None
    assert "day" not in snapshot.blends
    assert snapshot.combined.total() == pytest.approx(100.0)


@pytest.mark.parametrize("name", sorted(STRATEGIES))
def test_snapshot_with_each_strategy(name):
    chart = compute_pillars(2001, 11, 3, 7, 45)
    snapshot = compute_continuous_angles(chart, strategy=get_strategy(name))
    assert snapshot.strategy == name
    assert snapshot.combined.total() == pytest.approx(100.0)


def test_dawn_birth_opens_the_day_arc():
    chart = compute_pillars(2001, 11, 3, 3, 0)
    snapshot = compute_continuous_angles(chart)
    assert snapshot.angles["day"] == pytest.approx(fraction_to_angle(chart.day.index % 12, 0.0))


def test_year_angle_follows_month_angle():
    chart = compute_pillars(2001, 11, 3, 7, 45)
    snapshot = compute_continuous_angles(chart)
    month = snapshot.angles["month"]
    expected = fraction_to_angle(chart.year.index % 12, cycle_fraction(month))
    assert snapshot.angles["year"] == pytest.approx(expected)
