"""
Local mean time correction, applied to clock time before the chart is cast.

Clock time follows a zone's standard meridian; the sun follows the birth
longitude. Each degree east of the meridian puts local noon 4 minutes
earlier. Korea keeps its clocks on 135E while Seoul sits near 127E, so
Seoul births shift back roughly half an hour.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from timezonefinder import TimezoneFinder

from saju.errors import InvalidInputError

logger = logging.getLogger(__name__)

KST_MERIDIAN = 135.0
MINUTES_PER_DEGREE = 4

_tf = TimezoneFinder()


def longitude_correction(longitude: float, meridian: float = KST_MERIDIAN) -> float:
    """Minutes to add to clock time; negative west of the meridian."""
    return (longitude - meridian) * MINUTES_PER_DEGREE


@dataclass(frozen=True)
class CorrectedTime:
    original: datetime
    corrected: datetime
    correction_minutes: int
    meridian: float

    def to_dict(self):
        return {
            "original": self.original.strftime("%Y-%m-%d %H:%M"),
            "corrected": self.corrected.strftime("%Y-%m-%d %H:%M"),
            "correction_minutes": self.correction_minutes,
            "meridian": self.meridian,
        }


def apply_longitude_correction(year: int, month: int, day: int, hour: int, minute: int,
                               longitude: float, meridian: float = KST_MERIDIAN) -> CorrectedTime:
    """
    Shift a clock time to local mean time, rolling the date as needed.

    Args:
        year, month, day, hour, minute: civil clock time
        longitude: birth longitude in degrees, east positive
        meridian: standard meridian of the clock's zone

    Returns:
        CorrectedTime with the shift rounded to whole minutes
    """
    original = datetime(year, month, day, hour, minute)
    shift = round(longitude_correction(longitude, meridian))
    corrected = original + timedelta(minutes=shift)
    logger.debug("Longitude correction %+d min: %s -> %s", shift, original, corrected)
    return CorrectedTime(original, corrected, shift, meridian)


def standard_meridian_for(latitude: float, longitude: float, when: datetime) -> float:
    """
    Standard meridian of the zone covering a location at a given local time.

    Uses the zone's standard offset, so a birth during daylight saving time
    still maps to the zone's winter meridian (15 degrees per hour).
    """
    tz_name = _tf.timezone_at(lat=latitude, lng=longitude)
    if tz_name is None:
        raise InvalidInputError(f"Could not determine timezone for ({latitude}, {longitude})",
                                latitude=latitude, longitude=longitude)

    local_dt = when.replace(tzinfo=ZoneInfo(tz_name))
    offset = local_dt.utcoffset()
    dst = local_dt.dst()
    if dst:
        offset -= dst
    return offset.total_seconds() / 3600 * 15
