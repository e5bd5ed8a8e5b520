"""
Fallback forecast synthesizer.

Builds a full 3-day × 24-hour forecast from a region climate profile when the
upstream API is down or returns junk. synthesize() never raises.

Per hour:
  temperature  diurnal sine peaking at noon (±8°C) + jitter
  wind         profile baseline ± 2.5 km/h, gusts = wind × 1.3
  humidity     baseline ± 5 %
  cloud cover  baseline ± 10 %
  UV           daytime-only sine of the profile UV
  visibility   profile constant

Jitter comes from a random.Random seeded by coordinate + date + hour, so the
same location always produces the same synthetic values within a process.
"""

import logging
import math
import random
from datetime import date, datetime, timedelta
from typing import Callable

from coordinates import Coordinate, local_time_now
from data.climate import ClimateProfile, profile_for
from data.forecast import (
    FORECAST_DAYS,
    SOURCE_FALLBACK,
    DayForecast,
    ForecastMetadata,
    ForecastResult,
    HourlyCondition,
    Location,
    utcnow,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Why the synthesizer ran
# ---------------------------------------------------------------------------

FALLBACK_MESSAGES = {
    "network-error": "Weather API unavailable",
    "timeout": "Weather API did not respond in time",
    "invalid-payload": "Weather API returned empty data",
}
DEFAULT_FALLBACK_MESSAGE = "Weather API fallback"


def fallback_message(reason: str) -> str:
    if reason.startswith("http-error"):
        return f"Weather service error ({reason.rsplit('-', 1)[-1]})"
    return FALLBACK_MESSAGES.get(reason, DEFAULT_FALLBACK_MESSAGE)


# ---------------------------------------------------------------------------
# Coarse built-in rating
# ---------------------------------------------------------------------------
# Advisory only. The presentation layer re-scores every hour with
# risk.engine.score_hour(). Same 0.5 granularity, rounded down.

def coarse_rating(profile: ClimateProfile, hour: int) -> float:
    rating = 4.0

    # time of day
    if hour < 7 or hour > 19:
        rating -= 0.5
    if 11 <= hour <= 15:
        rating += 0.3

    # temperature band
    if profile.base_temp < 10:
        rating -= 1.0
    if profile.base_temp > 35:
        rating -= 0.7
    if 18 <= profile.base_temp <= 28:
        rating += 0.2

    # wind band
    if profile.base_wind > 20:
        rating -= 1.5
    if profile.base_wind > 15:
        rating -= 0.8
    if profile.base_wind <= 10:
        rating += 0.2

    if profile.visibility < 10:
        rating -= 0.3
    if profile.uv_index > 7:
        rating -= 0.2

    rating = max(1.0, min(5.0, rating))
    return math.floor(rating * 2 + 1e-12) / 2


def _diurnal(hour: int) -> float:
    """-1..1 sine, 0 at 06:00 and 18:00, peak at 12:00."""
    return math.sin((hour - 6) * math.pi / 12)


def _clamp_pct(value: float) -> float:
    return float(max(0, min(100, round(value))))


def seeded_rng(key: str) -> random.Random:
    return random.Random(key)


class FallbackSynthesizer:
    """
    Usage
    -----
    synth = FallbackSynthesizer()
    result = synth.synthesize(Coordinate.validate(45, -93), "network-error")
    """

    def __init__(
        self,
        rng_factory: Callable[[str], random.Random] = seeded_rng,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._rng_factory = rng_factory
        self._clock = clock

    def synthesize(self, coord: Coordinate, reason: str = "network-error") -> ForecastResult:
        now = self._clock()
        today = local_time_now(coord, now).date()
        profile = profile_for(coord, today.month)

        logger.warning(
            "Synthesizing fallback forecast for %s (reason=%s, profile=%s/%s)",
            coord, reason, profile.climate_class, profile.name,
        )

        days = [self._day(coord, profile, today + timedelta(days=offset))
                for offset in range(FORECAST_DAYS)]

        return ForecastResult(
            success=True,
            location=Location(
                name=profile.name,
                region=profile.region,
                country=profile.country,
                latitude=coord.latitude,
                longitude=coord.longitude,
            ),
            forecast=days,
            metadata=ForecastMetadata(
                source=SOURCE_FALLBACK,
                retrieved_at=now,
                fallback_reason=reason,
                fallback_message=fallback_message(reason),
            ),
        )

    def _day(self, coord: Coordinate, profile: ClimateProfile, day: date) -> DayForecast:
        lat, lon = coord.rounded(6)
        hourly = {}
        for hour in range(24):
            rng = self._rng_factory(f"{lat:.6f},{lon:.6f}:{day.isoformat()}:{hour}")
            hourly[hour] = self._hour(profile, hour, rng)
        return DayForecast(date=day, hourly=hourly)

    def _hour(self, profile: ClimateProfile, hour: int, rng: random.Random) -> HourlyCondition:
        curve = _diurnal(hour)
        wind = profile.base_wind + rng.uniform(-2.5, 2.5)

        return HourlyCondition(
            hour=hour,
            temperature=float(round(profile.base_temp + curve * 8 + rng.uniform(-1.5, 1.5))),
            wind_speed=float(max(0, round(wind))),
            wind_direction=profile.wind_direction,
            gust_speed=float(max(0, round(wind * 1.3))),
            humidity=_clamp_pct(profile.humidity + rng.uniform(-5, 5)),
            cloud_cover=_clamp_pct(profile.cloud_cover + rng.uniform(-10, 10)),
            uv_index=float(max(0, round(profile.uv_index * curve))),
            visibility=float(profile.visibility),
            warnings=[],
            rating=coarse_rating(profile, hour),
            source=SOURCE_FALLBACK,
            beaufort=min(12, int(profile.base_wind // 3)),
        )
