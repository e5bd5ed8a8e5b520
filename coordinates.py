"""
coordinates.py — coordinate validation and local-time estimation.

Everything here is offline. The UTC offset is a geographic estimate:
  1. Named-region boxes (South Asia, East Asia, Europe, continental US)
  2. Otherwise round(longitude / 15)

Daylight saving is not modeled, so during DST periods the estimate can be
one hour off.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


class InvalidCoordinateError(ValueError):
    """Latitude/longitude missing, non-numeric, or out of range."""


@dataclass(frozen=True)
class Coordinate:
    latitude: float    # -90 .. 90
    longitude: float   # -180 .. 180

    @classmethod
    def validate(cls, lat, lon) -> "Coordinate":
        """Coerce and range-check a lat/lon pair. Raises InvalidCoordinateError."""
        try:
            latitude = float(lat)
            longitude = float(lon)
        except (TypeError, ValueError):
            raise InvalidCoordinateError(
                f"Coordinates must be numeric, got lat={lat!r}, lon={lon!r}"
            )

        if math.isnan(latitude) or not -90 <= latitude <= 90:
            raise InvalidCoordinateError(f"Latitude must be in [-90, 90], got {lat!r}")
        if math.isnan(longitude) or not -180 <= longitude <= 180:
            raise InvalidCoordinateError(f"Longitude must be in [-180, 180], got {lon!r}")

        return cls(latitude=latitude, longitude=longitude)

    def rounded(self, places: int = 6) -> tuple[float, float]:
        return round(self.latitude, places), round(self.longitude, places)

    def __str__(self) -> str:
        return f"({self.latitude:.4f}, {self.longitude:.4f})"


# ---------------------------------------------------------------------------
# Named-region offset overrides, checked in order
# ---------------------------------------------------------------------------
#   (lat_min, lat_max, lon_min, lon_max) boxes

SOUTH_ASIA_BOX = (6, 37, 68, 97)       # IST, UTC+5:30
EAST_ASIA_BOX = (18, 54, 73, 135)      # China standard time, UTC+8
EUROPE_BOX = (35, 71, -10, 40)         # CET west of 7.5°E, EET-ish east of it
CONTINENTAL_US_BOX = (25, 49, -125, -66)

# US bands: (western longitude bound, offset), first match wins
US_OFFSET_BANDS = [
    (-90, -5),    # Eastern
    (-105, -6),   # Central
    (-120, -7),   # Mountain
]
US_PACIFIC_OFFSET = -8


def _in_box(coord: Coordinate, box: tuple) -> bool:
    lat_min, lat_max, lon_min, lon_max = box
    return (lat_min <= coord.latitude <= lat_max
            and lon_min <= coord.longitude <= lon_max)


def estimate_utc_offset_hours(coord: Coordinate) -> float:
    """Estimate the standard-time UTC offset (hours) for a coordinate."""
    if _in_box(coord, SOUTH_ASIA_BOX):
        return 5.5
    if _in_box(coord, EAST_ASIA_BOX):
        return 8.0
    if _in_box(coord, EUROPE_BOX):
        return 2.0 if coord.longitude > 7.5 else 1.0
    if _in_box(coord, CONTINENTAL_US_BOX):
        for western_bound, offset in US_OFFSET_BANDS:
            if coord.longitude >= western_bound:
                return float(offset)
        return float(US_PACIFIC_OFFSET)

    return float(round(coord.longitude / 15))


def local_time_now(coord: Coordinate, now: datetime | None = None) -> datetime:
    """
    Current wall-clock time at the coordinate (naive datetime).

    `now` is an aware UTC datetime; defaults to the real current time.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    offset = estimate_utc_offset_hours(coord)
    utc_naive = now.astimezone(timezone.utc).replace(tzinfo=None)
    return utc_naive + timedelta(hours=offset)


def local_hour_now(coord: Coordinate, now: datetime | None = None) -> int:
    """Current local hour (0-23) at the coordinate."""
    return local_time_now(coord, now).hour


def format_utc_offset(offset: float) -> str:
    """5.5 → 'GMT+5:30', -8 → 'GMT-8'."""
    sign = "+" if offset >= 0 else "-"
    hours = int(abs(offset))
    minutes = int(round((abs(offset) - hours) * 60))
    if minutes:
        return f"GMT{sign}{hours}:{minutes:02d}"
    return f"GMT{sign}{hours}"


# ---------------------------------------------------------------------------
# Sparse period buckets (upstream sends e.g. hours 8 / 12 / 18 only)
# ---------------------------------------------------------------------------

PERIOD_KEYS = [8, 12, 18]           # morning, noon, evening
PERIOD_RANGES = [(6, 10), (11, 15), (16, 20)]


def period_key_for_hour(hour: int) -> int:
    """Which sparse period represents `hour` (16+ → 18, 11+ → 12, else 8)."""
    if hour >= 16:
        return 18
    if hour >= 11:
        return 12
    return 8


def is_current_period(period_index: int, hour: int) -> bool:
    """True if `hour` falls inside the morning/noon/evening period range."""
    if not 0 <= period_index < len(PERIOD_RANGES):
        return False
    start, end = PERIOD_RANGES[period_index]
    return start <= hour <= end
