"""
Forecast data model shared by the upstream client, the fallback synthesizer,
the cache and the presentation helpers.

The JSON shape produced by ForecastResult.to_dict() is identical for both
sources ("api" and "fallback"); only metadata differs.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

SOURCE_API = "api"
SOURCE_FALLBACK = "fallback"

FORECAST_DAYS = 3


def to_number(value: Any) -> Optional[float]:
    """Best-effort float conversion. None for missing, malformed, or NaN."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _nested_number(raw: dict, key: str, *nested_keys: str) -> Optional[float]:
    """Read raw[key] as a number, or raw[key][nested] for nested upstream shapes."""
    value = raw.get(key)
    if isinstance(value, dict):
        for nested in nested_keys:
            if nested in value:
                return to_number(value[nested])
        return None
    return to_number(value)


@dataclass
class HourlyCondition:
    """Weather + rating for a single hour."""
    hour: int
    temperature: Optional[float] = None     # °C
    wind_speed: Optional[float] = None      # km/h
    wind_direction: Optional[str] = None    # compass label
    gust_speed: Optional[float] = None      # km/h
    humidity: Optional[float] = None        # %
    cloud_cover: Optional[float] = None     # %
    uv_index: Optional[float] = None
    visibility: Optional[float] = None      # km
    warnings: list[str] = field(default_factory=list)
    rating: Optional[float] = None
    source: str = SOURCE_API
    beaufort: Optional[int] = None

    @classmethod
    def from_payload(cls, hour: int, raw: dict, source: str = SOURCE_API) -> "HourlyCondition":
        """Parse one upstream hour entry. Unknown or malformed fields become None."""
        prediction = raw.get("prediction") if isinstance(raw.get("prediction"), dict) else {}
        rating = None
        for candidate in (raw.get("paddleRating"), prediction.get("rating"),
                          raw.get("apiRating"), raw.get("rating")):
            rating = to_number(candidate)
            if rating is not None:
                break

        warnings = raw.get("warnings") or []
        if isinstance(warnings, str):
            warnings = [warnings]
        elif not isinstance(warnings, list):
            warnings = []

        beaufort = to_number(raw.get("beaufortScale"))
        direction = raw.get("windDirection")

        return cls(
            hour=hour,
            temperature=_nested_number(raw, "temperature", "celsius"),
            wind_speed=_nested_number(raw, "windSpeed", "speedKPH"),
            wind_direction=str(direction) if direction is not None else None,
            gust_speed=to_number(raw.get("gustSpeed")),
            humidity=to_number(raw.get("humidity")),
            cloud_cover=to_number(raw.get("cloudCover")),
            uv_index=to_number(raw.get("uvIndex")),
            visibility=to_number(raw.get("visibility")),
            warnings=[str(w) for w in warnings],
            rating=rating,
            source=source,
            beaufort=int(beaufort) if beaufort is not None else None,
        )

    def to_dict(self) -> dict:
        return {
            "hour": self.hour,
            "temperature": self.temperature,
            "windSpeed": self.wind_speed,
            "windDirection": self.wind_direction,
            "gustSpeed": self.gust_speed,
            "humidity": self.humidity,
            "cloudCover": self.cloud_cover,
            "uvIndex": self.uv_index,
            "visibility": self.visibility,
            "beaufortScale": self.beaufort,
            "hasWarnings": bool(self.warnings),
            "warnings": list(self.warnings),
            "rating": self.rating,
            "source": self.source,
            "prediction": {
                "rating": self.rating,
                "predictionSource": "local-fallback" if self.source == SOURCE_FALLBACK else "api",
            },
        }


@dataclass
class DayForecast:
    date: date
    hourly: dict[int, HourlyCondition] = field(default_factory=dict)

    def hours(self) -> list[int]:
        return sorted(self.hourly)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "hourly": {str(h): self.hourly[h].to_dict() for h in self.hours()},
        }


@dataclass
class Location:
    name: str
    region: str
    country: str
    latitude: float
    longitude: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "region": self.region,
            "country": self.country,
            "coordinates": {"latitude": self.latitude, "longitude": self.longitude},
        }


@dataclass
class ForecastMetadata:
    source: str                            # "api" | "fallback"
    retrieved_at: datetime
    fallback_reason: Optional[str] = None  # only set when source == "fallback"
    fallback_message: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "source": self.source,
            "retrievedAt": self.retrieved_at.isoformat(),
        }
        if self.source == SOURCE_FALLBACK:
            data["fallbackReason"] = self.fallback_reason
            data["fallbackMessage"] = self.fallback_message
        return data


@dataclass
class ForecastResult:
    """Uniform 3-day result, regardless of where the data came from."""
    success: bool
    location: Location
    forecast: list[DayForecast]
    metadata: ForecastMetadata

    @property
    def source(self) -> str:
        return self.metadata.source

    @property
    def is_fallback(self) -> bool:
        return self.metadata.source == SOURCE_FALLBACK

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "location": self.location.to_dict(),
            "forecast": [day.to_dict() for day in self.forecast],
            "metadata": self.metadata.to_dict(),
        }


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_days(days: list[DayForecast], today: date | None = None) -> list[DayForecast]:
    """
    Force exactly FORECAST_DAYS entries: truncate extras, pad missing days
    with empty-hourly entries on consecutive dates.
    """
    days = list(days[:FORECAST_DAYS])
    if not days:
        start = today or utcnow().date()
        days = [DayForecast(date=start)]
    while len(days) < FORECAST_DAYS:
        days.append(DayForecast(date=days[-1].date + timedelta(days=1)))
    return days
