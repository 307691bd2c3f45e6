"""
Luck periods: decade (대운 daeun), year (세운 saeun) and month (월운 wolun).

Handles:
- Daeun direction from year-stem polarity and gender
- Daeun start from the distance to the nearest month boundary
  (3 days = 1 year, 1 day = 4 months)
- Saeun straight off the 60-year cycle
- Wolun from the 12 month-opening terms of a target year
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from saju.bazi import (DiscretePillars, TenGod, TwelveStage, month_index, sexagenary_name, ten_god,
                       twelve_stage, year_index)
from saju.branches import branch_profile
from saju.errors import InvalidInputError
from saju.solar_terms import MONTH_TERMS, SolarTermResolver, default_resolver

logger = logging.getLogger(__name__)

DAEUN_PERIODS = 12
DAYS_PER_YEAR_OF_LUCK = 3


class Gender(Enum):
    MALE = "m"
    FEMALE = "f"

    @classmethod
    def parse(cls, value) -> "Gender":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key in ("m", "male", "남", "남자"):
            return cls.MALE
        if key in ("f", "female", "여", "여자"):
            return cls.FEMALE
        raise InvalidInputError(f"Unknown gender {value!r}", code="INVALID_GENDER", gender=str(value))


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class LuckPillar:
    """Fields shared by every luck period: the pillar and its reading against the day master."""
    index: int
    stem_god: TenGod
    branch_god: TenGod
    stage: TwelveStage

    @property
    def name(self) -> str:
        return sexagenary_name(self.index)

    def _base_dict(self):
        return {
            "index": self.index,
            "pillar": self.name,
            "hanja": sexagenary_name(self.index, hanja=True),
            "stem_god": self.stem_god.value,
            "branch_god": self.branch_god.value,
            "stage": self.stage.value,
        }


@dataclass(frozen=True)
class DaeunPeriod(LuckPillar):
    age: int = 0            # Korean age at which the decade opens
    calendar_year: int = 0

    def to_dict(self):
        return {**self._base_dict(), "age": self.age, "calendar_year": self.calendar_year}


@dataclass(frozen=True)
class DaeunResult:
    periods: tuple
    forward: bool
    start_age: int
    start_year: int
    start_month: int

    def active(self, korean_age: int) -> Optional[DaeunPeriod]:
        """The latest period opened at or before ``korean_age``."""
        for period in reversed(self.periods):
            if korean_age >= period.age:
                return period
        return None

    def to_dict(self):
        return {
            "forward": self.forward,
            "start_age": self.start_age,
            "start_year": self.start_year,
            "start_month": self.start_month,
            "periods": [p.to_dict() for p in self.periods],
        }


@dataclass(frozen=True)
class SaeunPeriod(LuckPillar):
    year: int = 0
    age: int = 0

    def to_dict(self):
        return {**self._base_dict(), "year": self.year, "age": self.age}


@dataclass(frozen=True)
class WolunPeriod(LuckPillar):
    month_number: int = 0
    term_name: str = ""
    term_instant: Optional[datetime] = None

    def to_dict(self):
        return {
            **self._base_dict(),
            "month_number": self.month_number,
            "term_name": self.term_name,
            "term_instant": self.term_instant.isoformat() if self.term_instant else None,
        }


def _reading(day_stem: int, index: int) -> dict:
    return {
        "index": index,
        "stem_god": ten_god(day_stem, index % 10),
        "branch_god": ten_god(day_stem, branch_profile(index % 12).main_stem.index),
        "stage": twelve_stage(day_stem, index % 12),
    }


# ============================================================
# CALCULATORS
# ============================================================

def is_forward(year_stem_index: int, gender: Gender) -> bool:
    """Yang-year men and yin-year women run forward through the cycle."""
    yang = year_stem_index % 2 == 0
    return yang == (gender is Gender.MALE)


def compute_daeun(discrete: DiscretePillars, gender) -> DaeunResult:
    """
    Twelve decade periods stepping the month pillar by one per decade.

    Args:
        discrete: chart computed from a birth moment (needs its term boundaries)
        gender: Gender or any value Gender.parse accepts

    Returns:
        DaeunResult with the periods in order
    """
    gender = Gender.parse(gender)
    if discrete.birth is None or discrete.current_term is None:
        raise InvalidInputError("daeun needs a chart computed from a birth moment",
                                computation="compute_daeun")

    forward = is_forward(discrete.year.index % 10, gender)
    birth = discrete.birth
    if forward:
        span = discrete.next_term.instant - birth
    else:
        span = birth - discrete.current_term.instant
    days = max(0.0, span.total_seconds() / 86400)

    years = math.floor(days / DAYS_PER_YEAR_OF_LUCK)
    months = round((days - years * DAYS_PER_YEAR_OF_LUCK) / DAYS_PER_YEAR_OF_LUCK * 12)

    start_month = birth.month + months
    start_year = birth.year + years
    while start_month > 12:
        start_month -= 12
        start_year += 1
    start_age = start_year - birth.year + 1

    day_stem = discrete.day.index % 10
    step = 1 if forward else -1
    periods = tuple(
        DaeunPeriod(
            age=start_age + (i - 1) * 10,
            calendar_year=start_year + (i - 1) * 10,
            **_reading(day_stem, (discrete.month.index + step * i) % 60),
        )
        for i in range(1, DAEUN_PERIODS + 1)
    )

    logger.debug("Daeun %s from age %d (%.1f days to boundary)",
                 "forward" if forward else "backward", start_age, days)

    return DaeunResult(periods, forward, start_age, start_year, start_month)


def compute_saeun(discrete: DiscretePillars, start_year: int, end_year: int) -> list[SaeunPeriod]:
    """Year pillars for every Gregorian year in [start_year, end_year]."""
    if end_year < start_year:
        raise InvalidInputError("end_year precedes start_year", start_year=start_year, end_year=end_year)
    birth_year = discrete.birth.year if discrete.birth else None
    day_stem = discrete.day.index % 10
    return [
        SaeunPeriod(year=y, age=(y - birth_year + 1) if birth_year else 0,
                    **_reading(day_stem, year_index(y)))
        for y in range(start_year, end_year + 1)
    ]


def compute_wolun(discrete: DiscretePillars, target_year: int,
                  resolver: Optional[SolarTermResolver] = None) -> list[WolunPeriod]:
    """
    The 12 month pillars of ``target_year``, 寅 month (입춘) through 丑 month (소한 of the next year).
    """
    resolver = resolver or default_resolver
    year_stem = year_index(target_year) % 10
    day_stem = discrete.day.index % 10
    periods = []
    for term_name, month_number in MONTH_TERMS:
        search_year = target_year + 1 if month_number == 12 else target_year
        periods.append(WolunPeriod(
            month_number=month_number,
            term_name=term_name,
            term_instant=resolver.find(search_year, term_name),
            **_reading(day_stem, month_index(year_stem, month_number)),
        ))
    return periods
