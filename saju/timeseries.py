"""
Fortune time series: one merged profile per year (or per month of a year).

Each yearly point overlays the active decade pillar and that year's pillar
on the natal chart; each monthly point adds the month pillar as well. Deltas
are percentage-point changes against the natal-only baseline.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from saju.bazi import DiscretePillars, sexagenary_name, year_index
from saju.continuous import normalize_angle
from saju.elements import ELEMENTS
from saju.errors import InvalidInputError
from saju.luck import DaeunPeriod, DaeunResult, compute_wolun
from saju.scorer import FortunePillar, FortuneProfile, compute_profile
from saju.solar_terms import SolarTermResolver

logger = logging.getLogger(__name__)


def daeun_angle(korean_age: int, period: DaeunPeriod, forward: bool) -> float:
    """
    Continuous angle of the active decade.

    The decade walks its branch's 30 degree arc: boundary at the first year,
    centre at the fifth, next boundary at the tenth. Backward decades walk the
    arc in decreasing angle.
    """
    fraction = min(max((korean_age - period.age) / 10, 0.0), 1.0)
    direction = 1 if forward else -1
    return normalize_angle((period.index % 12) * 30 + (fraction - 0.5) * 30 * direction)


def profile_delta(profile: FortuneProfile, natal: FortuneProfile) -> dict:
    return {
        "oheng": {e.value: round(profile.oheng_percent[e] - natal.oheng_percent[e], 1) for e in ELEMENTS},
        "sipsung": {g.value: round(profile.sipsung_grouped[g] - natal.sipsung_grouped[g], 1)
                    for g in natal.sipsung_grouped},
    }


@dataclass(frozen=True)
class YearPoint:
    year: int
    age: int
    daeun: Optional[int]
    daeun_angle: Optional[float]
    saeun: int
    profile: FortuneProfile
    delta: dict

    def to_dict(self):
        return {
            "year": self.year,
            "age": self.age,
            "daeun": None if self.daeun is None else {"index": self.daeun, "pillar": sexagenary_name(self.daeun)},
            "daeun_angle": self.daeun_angle,
            "saeun": {"index": self.saeun, "pillar": sexagenary_name(self.saeun)},
            "profile": self.profile.to_dict(),
            "delta": self.delta,
        }


@dataclass(frozen=True)
class MonthPoint:
    month_number: int
    term_name: str
    wolun: int
    profile: FortuneProfile
    delta: dict

    def to_dict(self):
        return {
            "month_number": self.month_number,
            "term_name": self.term_name,
            "wolun": {"index": self.wolun, "pillar": sexagenary_name(self.wolun)},
            "profile": self.profile.to_dict(),
            "delta": self.delta,
        }


@dataclass(frozen=True)
class TimeSeries:
    natal: FortuneProfile
    points: tuple
    daeun_boundaries: tuple   # (calendar year, sexagenary index)

    def to_dict(self):
        return {
            "natal": self.natal.to_dict(),
            "yearly": [p.to_dict() for p in self.points],
            "daeun_boundaries": [
                {"year": y, "index": i, "pillar": sexagenary_name(i)} for y, i in self.daeun_boundaries
            ],
        }


def generate_time_series(discrete: DiscretePillars, has_time: bool, daeun: DaeunResult,
                         birth_year: int, start_year: int, end_year: int,
                         natal_angles: Optional[Mapping[str, float]] = None) -> TimeSeries:
    """
    Yearly merged profiles for every year in [start_year, end_year].

    Args:
        discrete: natal chart
        has_time: include the hour pillar
        daeun: decade periods from compute_daeun
        birth_year: Gregorian birth year, for Korean age
        start_year, end_year: inclusive range
        natal_angles: optional continuous natal angles passed to the scorer
    """
    if end_year < start_year:
        raise InvalidInputError("end_year precedes start_year", start_year=start_year, end_year=end_year)

    natal = compute_profile(discrete, has_time, natal_angles=natal_angles)
    points = []
    for year in range(start_year, end_year + 1):
        age = year - birth_year + 1
        active = daeun.active(age)
        saeun = year_index(year)

        overlays = [FortunePillar("saeun", saeun)]
        overlay_angles = {}
        angle = None
        if active is not None:
            overlays.insert(0, FortunePillar("daeun", active.index))
            angle = daeun_angle(age, active, daeun.forward)
            overlay_angles["daeun"] = angle

        profile = compute_profile(discrete, has_time, overlays, natal_angles, overlay_angles)
        points.append(YearPoint(year, age, active.index if active else None, angle, saeun,
                                profile, profile_delta(profile, natal)))

    logger.debug("Time series %d-%d: %d points", start_year, end_year, len(points))
    boundaries = tuple((p.calendar_year, p.index) for p in daeun.periods)
    return TimeSeries(natal, tuple(points), boundaries)


def generate_monthly_detail(discrete: DiscretePillars, has_time: bool, daeun_index: Optional[int],
                            saeun_index: int, target_year: int,
                            natal_angles: Optional[Mapping[str, float]] = None,
                            daeun_angle: Optional[float] = None,
                            resolver: Optional[SolarTermResolver] = None) -> list[MonthPoint]:
    """Twelve merged profiles for ``target_year``, one per month pillar."""
    natal = compute_profile(discrete, has_time, natal_angles=natal_angles)
    months = []
    for wolun in compute_wolun(discrete, target_year, resolver=resolver):
        overlays = {"saeun": saeun_index, "wolun": wolun.index}
        overlay_angles = {}
        if daeun_index is not None:
            overlays["daeun"] = daeun_index
            if daeun_angle is not None:
                overlay_angles["daeun"] = daeun_angle
        profile = compute_profile(discrete, has_time, overlays, natal_angles, overlay_angles)
        months.append(MonthPoint(wolun.month_number, wolun.term_name, wolun.index,
                                 profile, profile_delta(profile, natal)))
    return months
