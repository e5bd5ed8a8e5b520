"""
Upstream paddle forecast API client.

Endpoints:
  GET {base}/forecast?lat=..&lng=..   → 3-day hourly forecast
  GET {base}/current?lat=..&lng=..    → current conditions (single hour)

Every failure is raised as an UpstreamError subclass whose `reason` code is
what ends up in metadata.fallbackReason when the forecast falls back.
"""

import logging
from datetime import date

import requests

from config import DEFAULT_API_BASE, DEFAULT_TIMEOUT_SECONDS
from coordinates import Coordinate, local_hour_now
from data.forecast import (
    SOURCE_API,
    DayForecast,
    ForecastMetadata,
    ForecastResult,
    HourlyCondition,
    Location,
    normalize_days,
    utcnow,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class UpstreamError(Exception):
    """Base class for anything that goes wrong talking to the upstream API."""
    reason = "network-error"


class UpstreamNetworkError(UpstreamError):
    reason = "network-error"


class UpstreamTimeoutError(UpstreamNetworkError):
    reason = "timeout"


class UpstreamHTTPError(UpstreamError):
    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        self.reason = f"http-error-{status_code}"
        super().__init__(message or f"HTTP {status_code}")


class InvalidPayloadError(UpstreamError):
    reason = "invalid-payload"


# ---------------------------------------------------------------------------
# Payload validation / parsing
# ---------------------------------------------------------------------------

def is_valid_forecast_payload(data) -> bool:
    """success is true, forecast is a non-empty list, forecast[0].hourly is a non-empty dict."""
    if not isinstance(data, dict) or data.get("success") is not True:
        return False
    forecast = data.get("forecast")
    if not isinstance(forecast, list) or not forecast:
        return False
    first = forecast[0]
    if not isinstance(first, dict):
        return False
    hourly = first.get("hourly")
    return isinstance(hourly, dict) and len(hourly) > 0


def _parse_hourly(raw_hourly, source: str) -> dict[int, HourlyCondition]:
    hourly = {}
    if not isinstance(raw_hourly, dict):
        return hourly
    for key, raw in raw_hourly.items():
        try:
            hour = int(key)
        except (TypeError, ValueError):
            continue
        if not 0 <= hour <= 23 or not isinstance(raw, dict):
            continue
        hourly[hour] = HourlyCondition.from_payload(hour, raw, source)
    return hourly


def parse_forecast(data: dict, coord: Coordinate) -> ForecastResult:
    """
    Turn a validated upstream payload into a ForecastResult.
    Raises InvalidPayloadError if the shape is unusable.
    """
    if not is_valid_forecast_payload(data):
        raise InvalidPayloadError("Upstream returned empty or invalid forecast data")

    days = []
    for raw_day in data["forecast"]:
        if not isinstance(raw_day, dict):
            raise InvalidPayloadError("Forecast day is not an object")
        try:
            day = date.fromisoformat(str(raw_day.get("date"))[:10])
        except ValueError:
            raise InvalidPayloadError(f"Bad forecast date: {raw_day.get('date')!r}")
        days.append(DayForecast(date=day, hourly=_parse_hourly(raw_day.get("hourly"), SOURCE_API)))

    raw_location = data.get("location") if isinstance(data.get("location"), dict) else {}
    location = Location(
        name=str(raw_location.get("name") or "Unknown Location"),
        region=str(raw_location.get("region") or "Unknown Region"),
        country=str(raw_location.get("country") or "Unknown Country"),
        latitude=coord.latitude,
        longitude=coord.longitude,
    )

    return ForecastResult(
        success=True,
        location=location,
        forecast=normalize_days(days),
        metadata=ForecastMetadata(source=SOURCE_API, retrieved_at=utcnow()),
    )


def parse_current(data, coord: Coordinate) -> HourlyCondition:
    """Parse a current-conditions payload (bare object or wrapped in "current")."""
    if not isinstance(data, dict):
        raise InvalidPayloadError("Current conditions payload is not an object")
    if data.get("success") is False:
        raise InvalidPayloadError("Upstream reported success=false")
    raw = data.get("current") if isinstance(data.get("current"), dict) else data

    hour = raw.get("hour")
    if not isinstance(hour, int) or not 0 <= hour <= 23:
        hour = local_hour_now(coord)
    return HourlyCondition.from_payload(hour, raw, SOURCE_API)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

class UpstreamClient:
    """Thin requests-based client; no retries, bounded by `timeout`."""

    def __init__(
        self, base_url: str = DEFAULT_API_BASE, timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get(self, path: str, coord: Coordinate):
        url = f"{self.base_url}/{path}"
        logger.info("GET %s lat=%s lng=%s", url, coord.latitude, coord.longitude)
        try:
            resp = requests.get(
                url,
                params={"lat": coord.latitude, "lng": coord.longitude},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise UpstreamTimeoutError(f"Timed out after {self.timeout}s: {e}") from e
        except requests.RequestException as e:
            raise UpstreamNetworkError(str(e)) from e

        if not resp.ok:
            raise UpstreamHTTPError(resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise InvalidPayloadError(f"Response is not JSON: {e}") from e

    def fetch_forecast(self, coord: Coordinate) -> ForecastResult:
        data = self._get("forecast", coord)
        result = parse_forecast(data, coord)
        logger.info("Upstream forecast OK: %d days for %s", len(data["forecast"]), coord)
        return result

    def fetch_current(self, coord: Coordinate) -> HourlyCondition:
        return parse_current(self._get("current", coord), coord)
