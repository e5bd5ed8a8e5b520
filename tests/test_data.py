"""
Cache, climate profile, fallback synthesizer and upstream parsing tests.
All offline.
"""

import random
from datetime import date, datetime, timezone
from unittest import mock

import requests

from coordinates import Coordinate
from data.cache import ForecastCache, make_key
from data.climate import DEFAULT_PROFILE, climate_class, profile_for
from data.fallback import FallbackSynthesizer, coarse_rating, fallback_message
from data.forecast import HourlyCondition
from data.upstream import (
    InvalidPayloadError,
    UpstreamClient,
    UpstreamHTTPError,
    UpstreamNetworkError,
    UpstreamTimeoutError,
    is_valid_forecast_payload,
    parse_current,
    parse_forecast,
)

JAN = datetime(2026, 1, 15, 18, 0, tzinfo=timezone.utc)
JUL = datetime(2026, 7, 15, 18, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, t: float = 0.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


def coord(lat, lon) -> Coordinate:
    return Coordinate.validate(lat, lon)


def synth(now=JUL) -> FallbackSynthesizer:
    return FallbackSynthesizer(clock=lambda: now)


# ---------------------------------------------------------------------------
# ForecastCache
# ---------------------------------------------------------------------------

def test_cache_key_rounds_to_six_places():
    assert make_key(coord(45.00000001, -93.00000004)) == "45.000000,-93.000000,forecast"
    assert make_key(coord(45, -93), forecast=False) == "45.000000,-93.000000,current"
    assert make_key(coord(45.0000001, 0)) != make_key(coord(45.000001, 0))


def test_cache_freshness_and_overwrite():
    clock = FakeClock()
    cache = ForecastCache(ttl_seconds=600, fallback_ttl_seconds=300, clock=clock)
    here = coord(45, -93)
    assert cache.lookup(here) is None

    cache.store(here, "first")
    clock.t = 599
    entry = cache.lookup(here)
    assert entry.data == "first" and cache.is_fresh(entry)

    clock.t = 600
    assert not cache.is_fresh(entry)

    cache.store(here, "second")
    assert cache.lookup(here).data == "second"
    assert len(cache) == 1


def test_forecast_and_current_keys_are_separate():
    cache = ForecastCache(clock=FakeClock())
    here = coord(45, -93)
    cache.store(here, "forecast")
    cache.store(here, "current", forecast=False)
    assert cache.lookup(here).data == "forecast"
    assert cache.lookup(here, forecast=False).data == "current"


def test_fallback_entries_use_shorter_ttl():
    clock = FakeClock()
    cache = ForecastCache(ttl_seconds=600, fallback_ttl_seconds=300, clock=clock)
    fallback = synth().synthesize(coord(45, -93), "network-error")
    entry = cache.store(coord(45, -93), fallback)
    assert entry.is_fallback
    clock.t = 301
    assert not cache.is_fresh(entry)


def test_store_sweeps_stale_entries():
    clock = FakeClock()
    cache = ForecastCache(ttl_seconds=600, clock=clock)
    cache.store(coord(1, 1), "old")
    clock.t = 700
    cache.store(coord(2, 2), "new")
    assert cache.lookup(coord(1, 1)) is None
    assert len(cache) == 1


# ---------------------------------------------------------------------------
# Region climate profiles
# ---------------------------------------------------------------------------

def test_named_regions_win_over_latitude_bands():
    for month in (1, 7):
        ny = profile_for(coord(40.9, -73.5), month)
        assert (ny.name, ny.region, ny.country) == ("New York", "New York", "United States")

        nagpur = profile_for(coord(21.15, 79.1), month)
        assert (nagpur.name, nagpur.country) == ("Nagpur", "India")

        colorado = profile_for(coord(39.0, -105.5), month)
        assert colorado.name == "Colorado" and colorado.uv_index == 8

    assert profile_for(coord(40.7, -74), 1).base_temp == 5
    assert profile_for(coord(40.7, -74), 7).base_temp == 25
    # New York keeps the temperate band's seasonal cloud cover
    assert profile_for(coord(40.7, -74), 1).cloud_cover == 60


def test_latitude_bands_and_seasons():
    assert climate_class(coord(10, 0)) == "tropical"
    assert climate_class(coord(-23.4, 0)) == "tropical"
    assert climate_class(coord(45, 0)) == "northern-temperate"
    assert climate_class(coord(-45, 0)) == "southern-temperate"
    assert climate_class(coord(30, 0)) == "default"
    assert climate_class(coord(-30, 0)) == "default"

    assert profile_for(coord(45, 10), 1).base_temp == 8
    assert profile_for(coord(45, 10), 7).base_temp == 22
    # southern winter is mid-year
    assert profile_for(coord(-45, 170), 7).base_temp == 15
    assert profile_for(coord(-45, 170), 1).base_temp == 25
    assert profile_for(coord(10, 0), 7).wind_direction == "NE"

    default = profile_for(coord(30, 0), 5)
    assert default.base_temp == DEFAULT_PROFILE.base_temp
    assert default.name == "Unknown Location"


# ---------------------------------------------------------------------------
# Fallback synthesizer
# ---------------------------------------------------------------------------

def test_fallback_shape():
    result = synth().synthesize(coord(45, -93), "http-error-503")
    assert result.success is True
    assert result.metadata.source == "fallback"
    assert result.metadata.fallback_reason == "http-error-503"
    assert result.metadata.fallback_message == "Weather service error (503)"
    assert [d.date for d in result.forecast] == [
        date(2026, 7, 15), date(2026, 7, 16), date(2026, 7, 17)]
    for day in result.forecast:
        assert day.hours() == list(range(24))
        for h, cond in day.hourly.items():
            assert cond.hour == h
            assert cond.source == "fallback"
            assert cond.warnings == []
            assert 1.0 <= cond.rating <= 5.0 and cond.rating * 2 == int(cond.rating * 2)
            assert 0 <= cond.humidity <= 100 and 0 <= cond.cloud_cover <= 100
            assert cond.wind_speed >= 0


def test_fallback_is_reproducible_per_coordinate():
    a = synth().synthesize(coord(45, -93), "network-error").to_dict()
    b = synth().synthesize(coord(45, -93), "network-error").to_dict()
    c = synth().synthesize(coord(45.5, -93), "network-error").to_dict()
    assert a == b
    assert a["forecast"] != c["forecast"]


def test_fallback_rng_is_injectable():
    keys = []

    def factory(key):
        keys.append(key)
        return random.Random(0)

    FallbackSynthesizer(rng_factory=factory, clock=lambda: JUL).synthesize(coord(45, -93))
    assert len(keys) == 72
    assert keys[0] == "45.000000,-93.000000:2026-07-15:0"


def test_fallback_diurnal_curves():
    result = synth().synthesize(coord(10, 0), "network-error")
    day = result.forecast[0].hourly
    # UV only during daylight
    for h in (0, 3, 5, 18, 21, 23):
        assert day[h].uv_index == 0
    assert day[12].uv_index == 8
    # warmest around noon
    assert day[12].temperature > day[0].temperature
    assert all(c.visibility == 15 for c in day.values())


def test_named_region_in_fallback_output():
    result = synth(JAN).synthesize(coord(21.2, 79.0), "invalid-payload")
    assert (result.location.name, result.location.region, result.location.country) == (
        "Nagpur", "Maharashtra", "India")
    assert result.metadata.fallback_message == "Weather API returned empty data"


def test_synthesize_never_raises():
    s = synth()
    for lat in range(-90, 91, 30):
        for lon in range(-180, 181, 45):
            assert len(s.synthesize(coord(lat, lon), "network-error").forecast) == 3


def test_coarse_rating():
    # default profile: 4.0 + 0.3 (midday) + 0.2 (ideal temp) + 0.2 (light wind) = 4.7
    assert coarse_rating(DEFAULT_PROFILE, 12) == 4.5
    # night: 4.0 - 0.5 + 0.2 + 0.2 = 3.9
    assert coarse_rating(DEFAULT_PROFILE, 2) == 3.5
    colorado_winter = profile_for(coord(39.5, -106), 1)
    # 4.0 - 1.0 (cold) - 0.2 (UV) = 2.8
    assert coarse_rating(colorado_winter, 9) == 2.5


def test_fallback_messages():
    assert fallback_message("network-error") == "Weather API unavailable"
    assert fallback_message("timeout") == "Weather API did not respond in time"
    assert fallback_message("something-else") == "Weather API fallback"


# ---------------------------------------------------------------------------
# Upstream payload parsing
# ---------------------------------------------------------------------------

def _payload(days=3):
    return {
        "success": True,
        "location": {"name": "Lake Tahoe", "region": "CA", "country": "USA"},
        "forecast": [
            {"date": f"2026-07-{15 + d:02d}",
             "hourly": {"12": {"temperature": {"celsius": 18}, "windSpeed": {"speedKPH": 9},
                               "apiRating": 3.5, "warnings": "CAUTION: chop",
                               "beaufortScale": 2},
                        "99": {"temperature": 10},
                        "noon": {"temperature": 10}}}
            for d in range(days)
        ],
    }


def test_payload_validation():
    assert is_valid_forecast_payload(_payload())
    assert not is_valid_forecast_payload({**_payload(), "success": "true"})
    assert not is_valid_forecast_payload({"success": True, "forecast": {}})
    assert not is_valid_forecast_payload({"success": True, "forecast": [{"hourly": []}]})
    assert not is_valid_forecast_payload({"success": True, "forecast": ["day"]})
    assert not is_valid_forecast_payload(None)


def test_parse_forecast_normalizes_days_and_hours():
    here = coord(39.1, -120.0)
    result = parse_forecast(_payload(days=1), here)
    assert len(result.forecast) == 3
    assert [d.date for d in result.forecast] == [
        date(2026, 7, 15), date(2026, 7, 16), date(2026, 7, 17)]
    assert result.forecast[1].hourly == {}

    cond = result.forecast[0].hourly[12]
    assert list(result.forecast[0].hourly) == [12]
    assert cond.temperature == 18 and cond.wind_speed == 9
    assert cond.rating == 3.5
    assert cond.warnings == ["CAUTION: chop"]
    assert cond.beaufort == 2
    assert result.location.latitude == 39.1

    assert len(parse_forecast(_payload(days=5), here).forecast) == 3

    body = result.to_dict()
    assert "fallbackReason" not in body["metadata"]
    assert body["forecast"][0]["hourly"]["12"]["prediction"]["rating"] == 3.5


def test_parse_forecast_rejects_bad_dates():
    bad = _payload()
    bad["forecast"][0]["date"] = "someday"
    try:
        parse_forecast(bad, coord(0, 0))
    except InvalidPayloadError:
        pass
    else:
        raise AssertionError("bad date should be rejected")


def test_parse_current_shapes():
    here = coord(45, -93)
    wrapped = parse_current({"success": True, "current": {"hour": 9, "windSpeed": 4}}, here)
    assert wrapped.hour == 9 and wrapped.wind_speed == 4
    bare = parse_current({"temperature": 21}, here)
    assert 0 <= bare.hour <= 23 and bare.temperature == 21
    assert isinstance(bare, HourlyCondition)


def test_client_error_mapping():
    client = UpstreamClient(base_url="http://upstream.test/", timeout=3)
    here = coord(45, -93)
    cases = [
        (dict(side_effect=requests.Timeout("slow")), UpstreamTimeoutError, "timeout"),
        (dict(side_effect=requests.ConnectionError("refused")), UpstreamNetworkError, "network-error"),
        (dict(return_value=mock.Mock(ok=False, status_code=404)), UpstreamHTTPError, "http-error-404"),
    ]
    for patch_kwargs, error_cls, reason in cases:
        with mock.patch("data.upstream.requests.get", **patch_kwargs):
            try:
                client.fetch_forecast(here)
            except error_cls as e:
                assert e.reason == reason
            else:
                raise AssertionError(f"expected {error_cls.__name__}")
