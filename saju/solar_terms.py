"""
Solar term resolution.

The 24 solar terms mark the Sun reaching multiples of 15 degrees of
ecliptic longitude. The twelve major terms (절, "jie") delimit the saju
months; 입춘 (315 degrees) opens the saju year.

find() walks day by day from an approximate start date until the Sun's
offset from the target wraps (previous sample > 300 degrees, current
< 60 degrees), then bisects the bracketing day 52 times. Results are
stored per (year, term name) in a SolarTermCache owned by the resolver.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from saju.astronomy import jd_to_kst, julian_day, sun_longitude
from saju.errors import InvalidInputError, TermNotFoundError

logger = logging.getLogger(__name__)


# ============================================================
# TERM DEFINITIONS
# ============================================================

@dataclass(frozen=True)
class SolarTerm:
    korean: str
    hanja: str
    longitude: int
    month: int      # Gregorian month the term falls in
    major: bool     # True for the 12 month-opening terms


SOLAR_TERMS = [
    SolarTerm("소한", "小寒", 285, 1, True),
    SolarTerm("대한", "大寒", 300, 1, False),
    SolarTerm("입춘", "立春", 315, 2, True),
    SolarTerm("우수", "雨水", 330, 2, False),
    SolarTerm("경칩", "驚蟄", 345, 3, True),
    SolarTerm("춘분", "春分", 0, 3, False),
    SolarTerm("청명", "淸明", 15, 4, True),
    SolarTerm("곡우", "穀雨", 30, 4, False),
    SolarTerm("입하", "立夏", 45, 5, True),
    SolarTerm("소만", "小滿", 60, 5, False),
    SolarTerm("망종", "芒種", 75, 6, True),
    SolarTerm("하지", "夏至", 90, 6, False),
    SolarTerm("소서", "小暑", 105, 7, True),
    SolarTerm("대서", "大暑", 120, 7, False),
    SolarTerm("입추", "立秋", 135, 8, True),
    SolarTerm("처서", "處暑", 150, 8, False),
    SolarTerm("백로", "白露", 165, 9, True),
    SolarTerm("추분", "秋分", 180, 9, False),
    SolarTerm("한로", "寒露", 195, 10, True),
    SolarTerm("상강", "霜降", 210, 10, False),
    SolarTerm("입동", "立冬", 225, 11, True),
    SolarTerm("소설", "小雪", 240, 11, False),
    SolarTerm("대설", "大雪", 255, 12, True),
    SolarTerm("동지", "冬至", 270, 12, False),
]

TERM_BY_NAME = {t.korean: t for t in SOLAR_TERMS}

START_OF_SPRING = "입춘"

# Major terms in saju-month order: (term name, saju month number).
# Month 1 opens at 입춘 (寅 month); month 12 (丑) opens at the following 소한.
MONTH_TERMS = [
    ("입춘", 1), ("경칩", 2), ("청명", 3), ("입하", 4),
    ("망종", 5), ("소서", 6), ("입추", 7), ("백로", 8),
    ("한로", 9), ("입동", 10), ("대설", 11), ("소한", 12),
]


@dataclass(frozen=True)
class TermBoundary:
    name: str
    instant: datetime
    month_number: Optional[int]

    def to_dict(self):
        return {
            "name": self.name,
            "instant": self.instant.isoformat(),
            "month_number": self.month_number,
        }


# ============================================================
# CACHE + RESOLVER
# ============================================================

class SolarTermCache:
    """
    Write-once map of (year, term name) -> KST instant. Searches for a
    non-tabulated target longitude are keyed by the target as well.

    A lock guards the map so one cache may be shared between threads.
    There is no eviction: the key space is 24 terms per year.
    """

    def __init__(self):
        self._entries: dict[tuple, datetime] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(year: int, name: str, target: Optional[float] = None) -> tuple:
        return (year, name) if target is None else (year, name, target)

    def get(self, year: int, name: str, target: Optional[float] = None) -> Optional[datetime]:
        with self._lock:
            return self._entries.get(self._key(year, name, target))

    def put(self, year: int, name: str, instant: datetime, target: Optional[float] = None) -> datetime:
        """Store ``instant`` unless the key is already set; return the stored value."""
        with self._lock:
            return self._entries.setdefault(self._key(year, name, target), instant)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key):
        with self._lock:
            return key in self._entries


class SolarTermResolver:
    SEARCH_DAYS = 50
    BISECTION_STEPS = 52

    def __init__(self, cache: Optional[SolarTermCache] = None,
                 longitude_fn: Callable[[float], float] = sun_longitude):
        self.cache = cache if cache is not None else SolarTermCache()
        self.longitude_fn = longitude_fn

    def find(self, year: int, name: str, target_longitude: Optional[float] = None) -> datetime:
        """
        KST instant at which the Sun reaches ``target_longitude`` for term ``name`` of ``year``.

        Args:
            year: Gregorian year the term falls in
            name: Korean term name, e.g. "입춘"
            target_longitude: defaults to the term's tabulated longitude

        Raises:
            InvalidInputError: unknown term name
            TermNotFoundError: no crossing within the search window
        """
        term = TERM_BY_NAME.get(name)
        if term is None:
            raise InvalidInputError(f"Unknown solar term {name!r}", computation="find_solar_term",
                                    year=year, term=name)
        target = float(term.longitude if target_longitude is None else target_longitude)
        custom = None if target == term.longitude else target
        cached = self.cache.get(year, name, custom)
        if cached is not None:
            return cached

        if term.month == 1:
            start = date(year - 1, 12, 17)
        else:
            start = date(year, term.month, 1) - timedelta(days=15)
        j0 = julian_day(start.year, start.month, start.day)

        prev_offset = None
        for i in range(self.SEARCH_DAYS):
            j = j0 + i
            offset = self._offset(j, target)
            if prev_offset is not None and prev_offset > 300 and offset < 60:
                instant = jd_to_kst(self._bisect(j - 1, j, target))
                logger.debug("Solar term %s %d resolved to %s", name, year, instant)
                return self.cache.put(year, name, instant, custom)
            prev_offset = offset

        raise TermNotFoundError(
            f"No crossing of {target} degrees within {self.SEARCH_DAYS} days",
            computation="find_solar_term", year=year, term=name, target_longitude=target,
        )

    def _offset(self, jd: float, target: float) -> float:
        return (self.longitude_fn(jd) - target) % 360

    def _bisect(self, a: float, b: float, target: float) -> float:
        for _ in range(self.BISECTION_STEPS):
            m = (a + b) / 2
            if self._offset(m, target) > 180:
                a = m
            else:
                b = m
        return (a + b) / 2

    def start_of_spring(self, year: int) -> datetime:
        return self.find(year, START_OF_SPRING)

    def month_boundaries(self, saju_year: int) -> list[TermBoundary]:
        """
        The 12 month-opening terms of a saju year plus the closing 입춘.

        소한 (month 12) and the closing 입춘 fall in the next Gregorian year.
        """
        boundaries = []
        for name, month_number in MONTH_TERMS:
            year = saju_year + 1 if month_number == 12 else saju_year
            boundaries.append(TermBoundary(name, self.find(year, name), month_number))
        boundaries.append(TermBoundary(START_OF_SPRING, self.find(saju_year + 1, START_OF_SPRING), None))
        return boundaries

    def year_terms(self, year: int) -> list[TermBoundary]:
        """All 24 terms falling in Gregorian ``year``, chronological."""
        result = [TermBoundary(t.korean, self.find(year, t.korean), None) for t in SOLAR_TERMS]
        result.sort(key=lambda b: b.instant)
        return result


default_resolver = SolarTermResolver()


def find_solar_term(year: int, name: str, target_longitude: Optional[float] = None) -> datetime:
    """Module-level shortcut onto the process default resolver."""
    return default_resolver.find(year, name, target_longitude)


if __name__ == "__main__":
    for boundary in default_resolver.year_terms(2026):
        print(f"  {boundary.name}  {boundary.instant:%Y-%m-%d %H:%M}")
