"""
BirthMoment: one validated birth instant and everything derived from it.

Construction validates the civil date and time; every derived structure is
a cached_property, computed on first access and kept for the instance's
lifetime. Instances are immutable, so the caches never need invalidating.

    moment = BirthMoment(1990, 5, 15, 14, 30, "m")
    moment.discrete.day.name      # 경진
    moment.profile.oheng_percent
"""

import calendar
from dataclasses import dataclass, replace
from functools import cached_property
from typing import Optional

from saju.bazi import DiscretePillars, TwelveStageMatrix, compute_discrete, twelve_stage_matrix
from saju.continuous import (ContinuousSnapshot, InterpolationStrategy, blended_profiles,
                             compute_continuous_angles, sample_curves)
from saju.errors import InvalidInputError
from saju.luck import DaeunResult, Gender, compute_daeun, compute_saeun, compute_wolun
from saju.relations import Relation, detect_relations
from saju.scorer import FortuneProfile, compute_profile
from saju.solar_terms import SolarTermResolver
from saju.solar_time import KST_MERIDIAN, apply_longitude_correction
from saju.strength import StrengthAssessment, assess_strength
from saju.timeseries import TimeSeries, generate_monthly_detail, generate_time_series

MIN_YEAR = 1900
MAX_YEAR = 2100
SEOUL_LONGITUDE = 127.0


@dataclass(frozen=True)
class BirthMoment:
    year: int
    month: int
    day: int
    hour: Optional[int] = None
    minute: Optional[int] = None
    gender: Gender = Gender.MALE
    longitude: float = SEOUL_LONGITUDE

    def __post_init__(self):
        if not MIN_YEAR <= self.year <= MAX_YEAR:
            raise InvalidInputError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}",
                                    code="INVALID_DATE", year=self.year)
        if not 1 <= self.month <= 12:
            raise InvalidInputError("Month must be 1-12", code="INVALID_DATE", month=self.month)
        last_day = calendar.monthrange(self.year, self.month)[1]
        if not 1 <= self.day <= last_day:
            raise InvalidInputError(f"Day must be 1-{last_day} for {self.year}-{self.month:02d}",
                                    code="INVALID_DATE", day=self.day)
        if self.hour is None and self.minute is not None:
            raise InvalidInputError("Minute given without an hour", code="INVALID_TIME", minute=self.minute)
        if self.hour is not None and not 0 <= self.hour <= 23:
            raise InvalidInputError("Hour must be 0-23", code="INVALID_TIME", hour=self.hour)
        if self.minute is not None and not 0 <= self.minute <= 59:
            raise InvalidInputError("Minute must be 0-59", code="INVALID_TIME", minute=self.minute)
        if not -180 <= self.longitude <= 180:
            raise InvalidInputError("Longitude must be within [-180, 180]", longitude=self.longitude)
        object.__setattr__(self, "gender", Gender.parse(self.gender))

    @property
    def has_time(self) -> bool:
        return self.hour is not None

    # -- derived data ------------------------------------------------

    @cached_property
    def discrete(self) -> DiscretePillars:
        return compute_discrete(self)

    @cached_property
    def continuous(self) -> ContinuousSnapshot:
        return compute_continuous_angles(self.discrete, self.hour, self.minute)

    @cached_property
    def matrix(self) -> TwelveStageMatrix:
        return twelve_stage_matrix(self.discrete)

    @cached_property
    def profile(self) -> FortuneProfile:
        return compute_profile(self.discrete, self.has_time)

    @cached_property
    def strength(self) -> StrengthAssessment:
        return assess_strength(self.discrete, self.profile)

    @cached_property
    def daeun(self) -> DaeunResult:
        return compute_daeun(self.discrete, self.gender)

    @cached_property
    def relations(self) -> list[Relation]:
        return detect_relations(self.discrete)

    # -- parameterised views -----------------------------------------

    def continuous_with(self, strategy: InterpolationStrategy) -> ContinuousSnapshot:
        return compute_continuous_angles(self.discrete, self.hour, self.minute, strategy=strategy)

    def saeun(self, start_year: int, end_year: int):
        return compute_saeun(self.discrete, start_year, end_year)

    def wolun(self, target_year: int, resolver: Optional[SolarTermResolver] = None):
        return compute_wolun(self.discrete, target_year, resolver=resolver)

    def time_series(self, start_year: int, end_year: int, continuous: bool = False) -> TimeSeries:
        """Yearly profiles; ``continuous`` feeds the natal angles to the scorer."""
        angles = self.continuous.angles if continuous else None
        return generate_time_series(self.discrete, self.has_time, self.daeun, self.year,
                                    start_year, end_year, natal_angles=angles)

    def monthly_detail(self, target_year: int):
        age = target_year - self.year + 1
        active = self.daeun.active(age)
        return generate_monthly_detail(self.discrete, self.has_time,
                                       active.index if active else None,
                                       self.saeun(target_year, target_year)[0].index, target_year)

    def corrected(self, meridian: float = KST_MERIDIAN) -> "BirthMoment":
        """A new moment shifted to local mean time for this longitude; unchanged without a time."""
        if not self.has_time:
            return self
        shifted = apply_longitude_correction(self.year, self.month, self.day, self.hour, self.minute or 0,
                                             self.longitude, meridian).corrected
        return replace(self, year=shifted.year, month=shifted.month, day=shifted.day,
                       hour=shifted.hour, minute=shifted.minute)

    # -- export --------------------------------------------------------

    def chart_data(self) -> dict:
        """Everything a presentation layer needs for one chart."""
        curves = sample_curves(samples=360)
        return {
            "input": self.to_dict(),
            "discrete": self.discrete.to_dict(),
            "continuous": self.continuous.to_dict(),
            "blended": {p: b.to_dict() for p, b in blended_profiles(self.continuous).items()},
            "matrix": self.matrix.to_dict(),
            "profile": self.profile.to_dict(),
            "strength": self.strength.to_dict(),
            "daeun": self.daeun.to_dict(),
            "relations": [r.to_dict() for r in self.relations],
            "curves": {k: v.tolist() for k, v in curves.items()},
        }

    def to_dict(self):
        return {
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "hour": self.hour,
            "minute": self.minute,
            "gender": self.gender.value,
            "longitude": self.longitude,
            "has_time": self.has_time,
        }
