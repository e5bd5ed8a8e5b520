"""
Safety scoring engine.

Takes one hour of weather + its qualitative warnings and produces the final
paddle safety rating.

Model (applied in order):
  1. rating      = upstream rating, or 2.5 if missing
  2. deductions  DANGER -1.0, WARNING -0.5, CAUTION -0.25 (per warning, stacking)
  3. hard caps   wind > 30 or gust > 40     → ≤ 1.0
                 wind > 25 or gust > 35     → ≤ 2.0
                 temperature < 10 °C        → ≤ 1.5
                 visibility < 3 km          → ≤ 1.0
  4. clamp       1.0 .. 5.0
  5. round DOWN  to the nearest 0.5

Caps only ever lower the rating, so one extreme condition always dominates.
Everything here is total: missing or malformed inputs fall back to neutral
values instead of raising.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field

from data.forecast import to_number

DEFAULT_RATING = 2.5
MIN_RATING = 1.0
MAX_RATING = 5.0

# Neutral (no-penalty) values for missing weather fields
NEUTRAL_WIND = 0.0
NEUTRAL_GUST = 0.0
NEUTRAL_TEMPERATURE = 20.0
NEUTRAL_VISIBILITY = 10.0


# ---------------------------------------------------------------------------
# Warning deductions (case-insensitive keyword match)
# ---------------------------------------------------------------------------

WARNING_DEDUCTIONS = [
    ("DANGER",  1.0),   # life threatening
    ("WARNING", 0.5),   # serious concern
    ("CAUTION", 0.25),  # moderate concern
]


def normalize_warnings(warnings) -> list[str]:
    """List of warning strings: a bare string is one warning, anything else non-list is none."""
    if isinstance(warnings, str):
        return [warnings]
    if isinstance(warnings, (list, tuple)):
        return [str(w) for w in warnings if w is not None]
    return []


def warning_deductions(warnings) -> float:
    """Total deduction for a list of warnings. A warning can hit several keywords."""
    total = 0.0
    for warning in normalize_warnings(warnings):
        text = str(warning).upper()
        for keyword, amount in WARNING_DEDUCTIONS:
            if keyword in text:
                total += amount
    return total


# ---------------------------------------------------------------------------
# Hard caps: (name, predicate, cap)
# ---------------------------------------------------------------------------

SAFETY_CAPS = [
    ("dangerous-wind", lambda w: w["wind"] > 30 or w["gust"] > 40, 1.0),
    ("high-wind",      lambda w: w["wind"] > 25 or w["gust"] > 35, 2.0),
    ("cold",           lambda w: w["temperature"] < 10,             1.5),
    ("poor-visibility", lambda w: w["visibility"] < 3,              1.0),
]


def _read(condition, attr: str, *payload_keys: str):
    """Read a field from an HourlyCondition-like object or an upstream dict."""
    if condition is None:
        return None
    if isinstance(condition, Mapping):
        for key in payload_keys:
            value = condition.get(key)
            if isinstance(value, Mapping):
                value = value.get("celsius", value.get("speedKPH"))
            if value is not None:
                return value
        return None
    return getattr(condition, attr, None)


def _number(value, default: float) -> float:
    number = to_number(value)
    return default if number is None else number


def _base_rating(condition) -> float:
    if isinstance(condition, Mapping):
        prediction = condition.get("prediction")
        candidates = [
            condition.get("paddleRating"),
            prediction.get("rating") if isinstance(prediction, Mapping) else None,
            condition.get("apiRating"),
            condition.get("rating"),
        ]
    else:
        candidates = [getattr(condition, "rating", None)]
    for candidate in candidates:
        rating = to_number(candidate)
        if rating is not None:
            return rating
    return DEFAULT_RATING


def _weather(condition) -> dict:
    return {
        "wind": _number(_read(condition, "wind_speed", "windSpeed", "wind"), NEUTRAL_WIND),
        "gust": _number(_read(condition, "gust_speed", "gustSpeed"), NEUTRAL_GUST),
        "temperature": _number(_read(condition, "temperature", "temperature"), NEUTRAL_TEMPERATURE),
        "visibility": _number(_read(condition, "visibility", "visibility"), NEUTRAL_VISIBILITY),
    }


def round_down_half(rating: float) -> float:
    """Round toward caution: 3.99 → 3.5, 4.0 → 4.0."""
    # epsilon only absorbs float noise such as 4.0 - 1e-15
    return math.floor(rating * 2 + 1e-12) / 2


@dataclass
class ScoreBreakdown:
    base_rating: float
    deduction: float
    caps_applied: list[str] = field(default_factory=list)
    final_rating: float = DEFAULT_RATING


def explain_score(condition, warnings=None) -> ScoreBreakdown:
    """Full scoring pass, keeping each intermediate step for display."""
    if warnings is None:
        warnings = _read(condition, "warnings", "warnings")
    warnings = normalize_warnings(warnings)

    base = _base_rating(condition)
    rating = min(base, MAX_RATING)

    deduction = warning_deductions(warnings)
    rating -= deduction

    weather = _weather(condition)
    caps_applied = []
    for name, triggered, cap in SAFETY_CAPS:
        if triggered(weather) and rating > cap:
            rating = cap
            caps_applied.append(name)

    rating = max(MIN_RATING, rating)

    return ScoreBreakdown(
        base_rating=base,
        deduction=deduction,
        caps_applied=caps_applied,
        final_rating=round_down_half(rating),
    )


def score_hour(condition, warnings=None) -> float:
    """
    Final 1.0–5.0 safety rating (0.5 steps) for one hour.

    `condition` is an HourlyCondition, an upstream hour dict, or None.
    `warnings` defaults to the condition's own warnings.
    """
    return explain_score(condition, warnings).final_rating
