"""
coord_parser.py — free-text coordinate input for the CLI and HTTP surface.

Accepted forms:
  "37.7749, -122.4194"
  "37.7749 -122.4194"
  "37.7749°, -122.4194°"
  "37.7749N 122.4194W"

Anything else raises InvalidCoordinateError; range checks are done by
Coordinate.validate().
"""

import re

from coordinates import Coordinate, InvalidCoordinateError

# number, optional degree sign, optional hemisphere letter
_PART = r"([-+]?\d+(?:\.\d+)?)\s*°?\s*([NSEWnsew])?"
COORD_PATTERN = re.compile(rf"^\s*{_PART}\s*[,;\s]\s*{_PART}\s*$")


def normalize_input(raw: str) -> str:
    """Collapse whitespace and strip surrounding brackets/parentheses."""
    text = " ".join(raw.strip().split())
    return text.strip("()[]{} ")


def _signed(value: str, hemisphere: str | None, negative: str) -> float:
    number = float(value)
    if hemisphere and hemisphere.upper() == negative:
        number = -abs(number)
    return number


def parse_coordinates(raw: str) -> Coordinate:
    """Parse a "lat, lng" style string into a validated Coordinate."""
    text = normalize_input(raw or "")
    match = COORD_PATTERN.match(text)
    if not match:
        raise InvalidCoordinateError(
            f"Could not read coordinates from {raw!r}. Try e.g. '37.7749, -122.4194'."
        )

    lat_value, lat_hemi, lon_value, lon_hemi = match.groups()
    if lat_hemi and lat_hemi.upper() not in "NS":
        raise InvalidCoordinateError(f"Latitude hemisphere must be N or S, got {lat_hemi!r}")
    if lon_hemi and lon_hemi.upper() not in "EW":
        raise InvalidCoordinateError(f"Longitude hemisphere must be E or W, got {lon_hemi!r}")

    return Coordinate.validate(
        _signed(lat_value, lat_hemi, "S"),
        _signed(lon_value, lon_hemi, "W"),
    )


def parse_query(args) -> Coordinate:
    """Coordinate from request args: lat + lng (or lon)."""
    lat = args.get("lat")
    lon = args.get("lng", args.get("lon"))
    if lat is None or lon is None:
        raise InvalidCoordinateError("Both 'lat' and 'lng' query parameters are required")
    return Coordinate.validate(lat, lon)
