"""
Region climate profiles.

Static baseline climate used only by the fallback synthesizer when the
upstream forecast is unavailable.

Lookup order (first match wins):
  1. Named regions: small boxes around known locations
  2. Latitude bands: tropical / northern temperate / southern temperate
  3. Global default

Every band and region branches on season (winter vs summer). Winter is
Dec–Mar north of the equator and Jun–Sep south of it.
"""

from dataclasses import dataclass, replace

from coordinates import Coordinate


@dataclass(frozen=True)
class ClimateProfile:
    base_temp: float       # °C
    base_wind: float       # km/h
    humidity: float        # %
    cloud_cover: float     # %
    uv_index: float
    visibility: float      # km
    wind_direction: str
    name: str = "Unknown Location"
    region: str = "Unknown Region"
    country: str = "Unknown Country"
    climate_class: str = "default"


DEFAULT_PROFILE = ClimateProfile(
    base_temp=20, base_wind=8, humidity=60, cloud_cover=30,
    uv_index=5, visibility=15, wind_direction="W",
)

NORTHERN_WINTER_MONTHS = {12, 1, 2, 3}
SOUTHERN_WINTER_MONTHS = {6, 7, 8, 9}

TROPICAL_LATITUDE = 23.5
TEMPERATE_LATITUDE = 35


# ---------------------------------------------------------------------------
# Latitude bands: class → (winter overrides, summer overrides)
# ---------------------------------------------------------------------------

BAND_OVERRIDES = {
    "tropical": (
        {"base_temp": 26, "humidity": 75, "uv_index": 8, "wind_direction": "NE"},
        {"base_temp": 30, "humidity": 75, "uv_index": 8, "wind_direction": "NE"},
    ),
    "northern-temperate": (
        {"base_temp": 8, "base_wind": 12, "humidity": 70, "cloud_cover": 60},
        {"base_temp": 22, "base_wind": 6, "humidity": 55, "cloud_cover": 25},
    ),
    "southern-temperate": (
        {"base_temp": 15, "base_wind": 10, "humidity": 65},
        {"base_temp": 25, "base_wind": 10, "humidity": 65},
    ),
    "default": ({}, {}),
}


@dataclass(frozen=True)
class NamedRegion:
    name: str
    region: str
    country: str
    center_lat: float
    center_lon: float
    half_width: float       # degrees in each direction
    winter: dict
    summer: dict

    def contains(self, coord: Coordinate) -> bool:
        return (abs(coord.latitude - self.center_lat) < self.half_width
                and abs(coord.longitude - self.center_lon) < self.half_width)


NAMED_REGIONS = [
    NamedRegion(
        name="Nagpur", region="Maharashtra", country="India",
        center_lat=21.15, center_lon=79.1, half_width=1,
        winter={"base_temp": 25, "humidity": 45, "uv_index": 7},
        summer={"base_temp": 35, "humidity": 75, "uv_index": 7},
    ),
    NamedRegion(
        name="New York", region="New York", country="United States",
        center_lat=40.7, center_lon=-74.0, half_width=2,
        winter={"base_temp": 5, "base_wind": 12, "humidity": 65},
        summer={"base_temp": 25, "base_wind": 12, "humidity": 65},
    ),
    NamedRegion(
        name="Colorado", region="Colorado", country="United States",
        center_lat=39.5, center_lon=-106.0, half_width=2,
        # high altitude → strong UV all year
        winter={"base_temp": -2, "base_wind": 15, "humidity": 35, "uv_index": 8},
        summer={"base_temp": 20, "base_wind": 15, "humidity": 35, "uv_index": 8},
    ),
]


def climate_class(coord: Coordinate) -> str:
    """Latitude-band climate class for a coordinate."""
    if abs(coord.latitude) < TROPICAL_LATITUDE:
        return "tropical"
    if coord.latitude > TEMPERATE_LATITUDE:
        return "northern-temperate"
    if coord.latitude < -TEMPERATE_LATITUDE:
        return "southern-temperate"
    return "default"


def is_winter(coord: Coordinate, month: int) -> bool:
    if coord.latitude < 0:
        return month in SOUTHERN_WINTER_MONTHS
    return month in NORTHERN_WINTER_MONTHS


def find_named_region(coord: Coordinate) -> NamedRegion | None:
    for region in NAMED_REGIONS:
        if region.contains(coord):
            return region
    return None


def profile_for(coord: Coordinate, month: int) -> ClimateProfile:
    """
    Baseline climate for a coordinate in a given calendar month (1-12).

    A named region layers its overrides (and its name/region/country) on
    top of the latitude-band profile.
    """
    winter = is_winter(coord, month)
    cls = climate_class(coord)
    winter_overrides, summer_overrides = BAND_OVERRIDES[cls]
    profile = replace(
        DEFAULT_PROFILE,
        climate_class=cls,
        **(winter_overrides if winter else summer_overrides),
    )

    region = find_named_region(coord)
    if region is not None:
        profile = replace(
            profile,
            name=region.name,
            region=region.region,
            country=region.country,
            **(region.winter if winter else region.summer),
        )

    return profile
