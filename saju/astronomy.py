"""
Astronomy utilities: Julian Day conversion and the Sun's ecliptic longitude.

Julian Day arithmetic goes through Swiss Ephemeris (``swe.julday`` /
``swe.revjul``). The Sun's apparent longitude uses a truncated periodic
series: mean longitude plus equation of centre, minus aberration and the
leading nutation term. Accuracy is well under a minute of solar-term time,
which is all the pillar boundaries need. An ephemeris-backed alternative
(Moshier mode, no data files required) is available for cross-checking.
"""

import math
from datetime import datetime

import swisseph as swe

J2000 = 2451545.0
DAYS_PER_CENTURY = 36525.0
KST_OFFSET_DAYS = 9 / 24


def julian_day(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> float:
    """Julian Day (UT) of a proleptic Gregorian civil date and time."""
    return swe.julday(year, month, day, hour + minute / 60.0)


def sun_longitude(jd: float) -> float:
    """
    Apparent ecliptic longitude of the Sun in degrees, [0, 360).

    Args:
        jd: Julian Day (UT)
    """
    t = (jd - J2000) / DAYS_PER_CENTURY

    # Mean longitude, mean anomaly
    l0 = (280.46646 + t * (36000.76983 + t * 0.0003032)) % 360
    m = math.radians((357.52911 + t * (35999.05029 - t * 0.0001537)) % 360)

    # Equation of centre
    c = ((1.914602 - t * (0.004817 + t * 0.000014)) * math.sin(m)
         + (0.019993 - t * 0.000101) * math.sin(2 * m)
         + 0.000289 * math.sin(3 * m))

    # Aberration + nutation in longitude
    omega = math.radians(125.04 - 1934.136 * t)
    return (l0 + c - 0.00569 - 0.00478 * math.sin(omega)) % 360


def sun_longitude_ephemeris(jd: float) -> float:
    """Sun longitude from the Moshier analytical ephemeris inside Swiss Ephemeris."""
    position, _ = swe.calc_ut(jd, swe.SUN, swe.FLG_MOSEPH)
    return position[0] % 360


def jd_to_kst(jd: float) -> datetime:
    """
    Convert a Julian Day (UT) to Korean civil time (fixed UTC+9).

    The result is naive and truncated to the minute.
    """
    year, month, day, hours = swe.revjul(jd + KST_OFFSET_DAYS)
    hour = int(hours)
    minute = int((hours - hour) * 60)
    return datetime(int(year), int(month), int(day), min(hour, 23), min(minute, 59))


if __name__ == "__main__":
    jd = julian_day(2000, 1, 1, 12)
    print(f"JD 2000-01-01 12:00 UT = {jd}")
    print(f"Sun longitude (series):    {sun_longitude(jd):.4f}")
    print(f"Sun longitude (ephemeris): {sun_longitude_ephemeris(jd):.4f}")
    print(f"KST: {jd_to_kst(jd)}")
