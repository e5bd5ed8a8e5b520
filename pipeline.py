"""
Core pipeline — the entry points the presentation layer calls:

  1. ForecastService.get_forecast(lat, lon)
     → 3-day ForecastResult. Never raises for a valid coordinate:
       upstream failures fall back to synthesized data.

  2. ForecastService.get_current(lat, lon)
     → HourlyCondition for "right now" (no fallback; raises UpstreamError).

  3. current_conditions(result, now) / rate_hour(condition) / rate_forecast(result)
     → pick the hour that represents "now" and re-score hours for display.

Cache policy:
  - fresh entry from the live API → returned, no network call
  - fresh entry from fallback     → upstream is retried anyway (self-heal)
  - concurrent misses for the same key share a single upstream call
"""

import logging
import threading
from concurrent.futures import Future
from datetime import datetime

from config import Settings
from coordinates import Coordinate, local_hour_now, period_key_for_hour
from data.cache import ForecastCache, make_key
from data.fallback import FallbackSynthesizer
from data.forecast import ForecastResult, HourlyCondition
from data.upstream import UpstreamClient, UpstreamError
from risk.engine import score_hour
from risk.response import SkillAssessment, classify

logger = logging.getLogger(__name__)


class ForecastService:
    """
    Orchestrates cache → upstream → fallback.

    Usage
    -----
    service = ForecastService()
    result = service.get_forecast(45.0, -93.0)
    print(result.metadata.source)  # "api" or "fallback"
    """

    def __init__(
        self,
        cache: ForecastCache | None = None,
        client: UpstreamClient | None = None,
        synthesizer: FallbackSynthesizer | None = None,
        settings: Settings | None = None,
    ) -> None:
        if settings is None and (cache is None or client is None):
            settings = Settings.from_env()
        # an empty cache is falsy (__len__), so test against None
        if cache is None:
            cache = ForecastCache(
                ttl_seconds=settings.cache_ttl_seconds,
                fallback_ttl_seconds=settings.fallback_ttl_seconds,
            )
        if client is None:
            client = UpstreamClient(base_url=settings.api_base, timeout=settings.timeout_seconds)
        if synthesizer is None:
            synthesizer = FallbackSynthesizer()

        self.cache = cache
        self.client = client
        self.synthesizer = synthesizer

        self._pending: dict[str, Future] = {}
        self._pending_lock = threading.Lock()

    # -----------------------------------------------------------------------
    # 1) 3-day forecast
    # -----------------------------------------------------------------------

    def get_forecast(self, lat: float, lon: float) -> ForecastResult:
        coord = Coordinate.validate(lat, lon)

        entry = self.cache.lookup(coord)
        if entry is not None and self.cache.is_fresh(entry):
            if not entry.is_fallback:
                logger.info("Using cached live forecast for %s", entry.key)
                return entry.data
            logger.info("Cached fallback for %s, checking if the API is back", entry.key)

        return self._deduplicated(make_key(coord), lambda: self._refresh_forecast(coord))

    def _refresh_forecast(self, coord: Coordinate) -> ForecastResult:
        try:
            result = self.client.fetch_forecast(coord)
        except UpstreamError as e:
            logger.warning("Forecast API failed for %s (%s): %s", coord, e.reason, e)
            result = self.synthesizer.synthesize(coord, e.reason)
        except Exception:
            # anything the client didn't classify is treated as a bad payload
            logger.exception("Unexpected error parsing forecast for %s", coord)
            result = self.synthesizer.synthesize(coord, "invalid-payload")

        self.cache.store(coord, result)
        return result

    # -----------------------------------------------------------------------
    # 2) Current conditions
    # -----------------------------------------------------------------------

    def get_current(self, lat: float, lon: float) -> HourlyCondition:
        coord = Coordinate.validate(lat, lon)

        entry = self.cache.lookup(coord, forecast=False)
        if entry is not None and self.cache.is_fresh(entry):
            logger.info("Using cached current conditions for %s", entry.key)
            return entry.data

        def fetch() -> HourlyCondition:
            condition = self.client.fetch_current(coord)
            self.cache.store(coord, condition, forecast=False)
            return condition

        return self._deduplicated(make_key(coord, forecast=False), fetch)

    # -----------------------------------------------------------------------
    # In-flight request registry
    # -----------------------------------------------------------------------

    def _deduplicated(self, key: str, work):
        """Run `work` once per key at a time; concurrent callers wait on the same Future."""
        with self._pending_lock:
            future = self._pending.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._pending[key] = future

        if not owner:
            logger.info("Joining in-flight request for %s", key)
            return future.result()

        try:
            future.set_result(work())
        except Exception as e:
            future.set_exception(e)
        finally:
            with self._pending_lock:
                self._pending.pop(key, None)

        return future.result()


# ---------------------------------------------------------------------------
# 3) Presentation helpers
# ---------------------------------------------------------------------------

def current_conditions(
    result: ForecastResult, now: datetime | None = None,
) -> tuple[int, HourlyCondition | None]:
    """
    Pick today's hour that represents "now" at the forecast location.

    Full 24-hour data uses the exact local hour. Sparse data (e.g. 8/12/18)
    uses the morning/noon/evening period bucket, else the nearest hour.
    """
    coord = Coordinate.validate(result.location.latitude, result.location.longitude)
    hour = local_hour_now(coord, now)
    hourly = result.forecast[0].hourly if result.forecast else {}

    if not hourly:
        return hour, None
    if hour in hourly:
        return hour, hourly[hour]

    period = period_key_for_hour(hour)
    if period in hourly:
        return period, hourly[period]

    nearest = min(hourly, key=lambda h: (abs(h - hour), h))
    return nearest, hourly[nearest]


def rate_hour(condition: HourlyCondition | None) -> SkillAssessment:
    """Re-score one hour with the safety engine and classify it."""
    warnings = condition.warnings if condition is not None else []
    rating = score_hour(condition, warnings)
    return classify(rating, warnings, condition)


def rate_forecast(result: ForecastResult) -> list[dict[int, float]]:
    """Re-scored rating for every hour of every day, keyed by hour."""
    return [
        {hour: score_hour(cond, cond.warnings) for hour, cond in sorted(day.hourly.items())}
        for day in result.forecast
    ]
