"""
Coordinate validation, local-time estimation and free-text parsing.
"""

from datetime import datetime, timezone

import pytest

from coordinates import (
    Coordinate,
    InvalidCoordinateError,
    estimate_utc_offset_hours,
    format_utc_offset,
    is_current_period,
    local_hour_now,
    local_time_now,
    period_key_for_hour,
)
from parser.coord_parser import normalize_input, parse_coordinates, parse_query


def coord(lat, lon) -> Coordinate:
    return Coordinate.validate(lat, lon)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def test_validate_coerces_numeric_strings():
    c = coord("45", "-93.5")
    assert (c.latitude, c.longitude) == (45.0, -93.5)
    assert coord(90, 180).latitude == 90.0
    assert coord(-90, -180).longitude == -180.0


@pytest.mark.parametrize("lat, lon", [
    (None, 0), ("abc", 0), (0, "east"), (float("nan"), 0), (0, float("nan")),
    (90.0001, 0), (-91, 0), (0, 180.5), (0, -181),
])
def test_validate_rejects(lat, lon):
    with pytest.raises(InvalidCoordinateError):
        Coordinate.validate(lat, lon)


def test_invalid_coordinate_is_a_value_error():
    assert issubclass(InvalidCoordinateError, ValueError)


# ---------------------------------------------------------------------------
# UTC offset estimate
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("lat, lon, expected", [
    (37.7749, -122.4194, -8),   # San Francisco
    (40.7, -74.0, -5),          # New York
    (35.0, -97.0, -6),          # Oklahoma
    (33.4, -112.0, -7),         # Phoenix
    (21.15, 79.1, 5.5),         # Nagpur
    (39.9, 116.4, 8),           # Beijing
    (48.85, 2.35, 1),           # Paris
    (52.5, 13.4, 2),            # Berlin
    (-33.9, 151.2, 10),         # Sydney
    (0.0, 0.0, 0),
    (-34.6, -58.4, -4),         # longitude estimate for Buenos Aires
])
def test_offset_estimates(lat, lon, expected):
    assert estimate_utc_offset_hours(coord(lat, lon)) == expected


def test_local_hour_now():
    noon_utc = datetime(2026, 1, 1, 18, 0, tzinfo=timezone.utc)
    assert local_hour_now(coord(45, -93), noon_utc) == 12
    assert local_hour_now(coord(21.15, 79.1), noon_utc) == 23
    # naive datetimes are read as UTC
    assert local_hour_now(coord(45, -93), datetime(2026, 1, 1, 18, 0)) == 12


def test_local_time_crosses_date_line():
    late = datetime(2026, 1, 1, 20, 0, tzinfo=timezone.utc)
    local = local_time_now(coord(-33.9, 151.2), late)
    assert (local.day, local.hour) == (2, 6)
    assert local.tzinfo is None

    early = datetime(2026, 1, 1, 3, 30, tzinfo=timezone.utc)
    local = local_time_now(coord(37.7749, -122.4194), early)
    assert (local.month, local.day, local.hour, local.minute) == (12, 31, 19, 30)


def test_format_utc_offset():
    assert format_utc_offset(5.5) == "GMT+5:30"
    assert format_utc_offset(-8) == "GMT-8"
    assert format_utc_offset(0) == "GMT+0"
    assert format_utc_offset(-3.5) == "GMT-3:30"


def test_period_buckets():
    assert [period_key_for_hour(h) for h in (0, 7, 10, 11, 15, 16, 23)] == [
        8, 8, 8, 12, 12, 18, 18]
    assert is_current_period(0, 6) and is_current_period(0, 10)
    assert not is_current_period(0, 11)
    assert is_current_period(2, 20)
    assert not is_current_period(3, 12)


# ---------------------------------------------------------------------------
# Free-text parsing
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("text", [
    "37.7749, -122.4194",
    "37.7749 -122.4194",
    "  37.7749,-122.4194  ",
    "37.7749°, -122.4194°",
    "(37.7749, -122.4194)",
    "37.7749N 122.4194W",
    "37.7749 n, 122.4194 w",
])
def test_parse_coordinates_forms(text):
    c = parse_coordinates(text)
    assert (c.latitude, c.longitude) == (37.7749, -122.4194)


def test_parse_southern_eastern_hemispheres():
    c = parse_coordinates("33.9S 151.2E")
    assert (c.latitude, c.longitude) == (-33.9, 151.2)


@pytest.mark.parametrize("text", [
    "", "   ", "san francisco", "37.7749", "37.7749N 122.4194N",
    "37.7749E 122.4194W", "95, 10", "10, 200",
])
def test_parse_coordinates_rejects(text):
    with pytest.raises(InvalidCoordinateError):
        parse_coordinates(text)


def test_normalize_input():
    assert normalize_input("  [ 1,\t 2 ]  ") == "1, 2"


def test_parse_query():
    assert parse_query({"lat": "45", "lng": "-93"}) == Coordinate(45.0, -93.0)
    assert parse_query({"lat": "45", "lon": "-93"}) == Coordinate(45.0, -93.0)
    with pytest.raises(InvalidCoordinateError):
        parse_query({"lat": "45"})
    with pytest.raises(InvalidCoordinateError):
        parse_query({"lat": "45", "lng": "west"})
