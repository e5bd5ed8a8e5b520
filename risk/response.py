"""
Condition classifier and text formatter.

Produces:
  - Skill band for a rating (Beginner-Friendly … Not-Recommended)
  - Human-readable, severity-flagged explanations for every warning
  - Contributing factors / forecast-window hints for one hour
  - A plain-text report used by the CLI

Every warning yields at least one explanation; unknown ones get a generic
"Safety concern" line instead of being dropped.
"""

import re
from dataclasses import dataclass, field

from data.forecast import ForecastResult, HourlyCondition, to_number
from risk.engine import DEFAULT_RATING, normalize_warnings, warning_deductions


# ---------------------------------------------------------------------------
# Skill bands (lower bound inclusive)
# ---------------------------------------------------------------------------

SKILL_BANDS = [
    (4.5, "Beginner-Friendly", "\U0001f530"),   # 🔰
    (3.5, "Intermediate+",     "⚓"),       # ⚓
    (2.5, "Experienced",       "\U0001f30a"),   # 🌊
    (1.5, "Expert-Level",      "⚡"),       # ⚡
]
NOT_RECOMMENDED = ("Not-Recommended", "⚠️")  # ⚠️

MULTIPLE_HAZARDS_THRESHOLD = 2.0

SEVERITY_ICONS = {
    "high":   "\U0001f6a8",  # 🚨
    "medium": "⚠️",  # ⚠️
    "low":    "ℹ️",  # ℹ️
}


def skill_band(rating) -> tuple[str, str]:
    """Return (band, icon) for a rating. Malformed ratings use the neutral default."""
    value = to_number(rating)
    if value is None:
        value = DEFAULT_RATING
    for lower, band, icon in SKILL_BANDS:
        if value >= lower:
            return band, icon
    return NOT_RECOMMENDED


def rating_label(rating) -> str:
    value = to_number(rating) or 0.0
    if value >= 4.0:
        return "Excellent"
    if value >= 3.0:
        return "Good"
    if value >= 2.0:
        return "Fair"
    return "Poor"


@dataclass
class Explanation:
    severity: str   # high | medium | low
    text: str

    def __str__(self) -> str:
        return f"{SEVERITY_ICONS.get(self.severity, '')} {self.text}".strip()


@dataclass
class SkillAssessment:
    band: str
    icon: str
    rating: float
    explanations: list[Explanation] = field(default_factory=list)
    total_deduction: float = 0.0

    @property
    def messages(self) -> list[str]:
        return [str(e) for e in self.explanations]

    def to_dict(self) -> dict:
        return {
            "band": self.band,
            "rating": self.rating,
            "explanations": [{"severity": e.severity, "text": e.text} for e in self.explanations],
            "totalDeduction": self.total_deduction,
        }


# ---------------------------------------------------------------------------
# Warning → explanation rules, checked in order, first match wins
# ---------------------------------------------------------------------------

def _first_number(pattern: str, text: str) -> str:
    match = re.search(pattern, text, re.IGNORECASE)
    return match.group(1) if match else ""


def _strong_wind(warning: str) -> Explanation:
    speed = _first_number(r"(\d+\.?\d*)\s*(?:mph|km/?h)", warning) or "high"
    beaufort = _first_number(r"\bb(\d+)", warning)
    suffix = f" (B{beaufort})" if beaufort else ""
    return Explanation("high", f"STRONG WINDS {speed}{suffix} - DANGEROUS")


def _cold_water(warning: str) -> Explanation:
    temp = _first_number(r"(-?\d+\.?\d*)\s*°?c\b", warning)
    if temp and float(temp) < 15:
        return Explanation("high", f"HYPOTHERMIA RISK {temp}°C - LIFE THREATENING")
    label = f" {temp}°C" if temp else ""
    return Explanation("medium", f"Cool water{label} - Wetsuit recommended")


def _warm_water(warning: str) -> Explanation:
    temp = _first_number(r"(\d+\.?\d*)\s*°?c\b", warning)
    label = f" {temp}°C" if temp else ""
    return Explanation("medium", f"Warm water{label} - Dehydration risk")


def _waves(size: str, severity: str, suffix: str):
    def build(warning: str) -> Explanation:
        height = _first_number(r"(\d+\.?\d*)\s*m\b", warning)
        label = f" {height}m" if height else ""
        return Explanation(severity, f"{size}{label} - {suffix}")
    return build


def _fixed(severity: str, text: str):
    return lambda warning: Explanation(severity, text)


# (keywords, builder); category groups: wind, waves, water/air temperature,
# heat/UV, visibility
EXPLANATION_RULES = [
    (("strong wind", "high wind", "dangerous wind"), _strong_wind),
    (("moderate wind",),   _fixed("medium", "Moderate winds - Increased difficulty")),
    (("light wind",),      _fixed("low", "Light winds - Reduced paddling efficiency")),
    (("large wave", "high wave"), _waves("LARGE WAVES", "high", "VERY DANGEROUS")),
    (("moderate wave",),   _waves("MODERATE WAVES", "medium", "Challenging conditions")),
    (("wave", "swell", "current", "chop"), _fixed("medium", "Wave conditions - Exercise caution")),
    (("cold water", "cool water", "cold air", "hypothermia", "freezing"), _cold_water),
    (("warm water", "hot water"), _warm_water),
    (("extreme heat",),    _fixed("high", "EXTREME HEAT - Heat stroke risk")),
    (("high heat", "heat index"), _fixed("medium", "High heat index - Stay hydrated")),
    (("uv", "sun"),        _fixed("medium", "High UV exposure - Sun protection needed")),
    (("poor visibility", "fog"), _fixed("high", "POOR VISIBILITY - Navigation hazard")),
    (("reduced visibility", "visibility"), _fixed("medium", "Reduced visibility - Use caution")),
]


def explain_warning(warning) -> Explanation:
    """Rewrite one raw warning string into a standardized phrase."""
    text = str(warning)
    lower = text.lower()
    for keywords, build in EXPLANATION_RULES:
        if any(k in lower for k in keywords):
            return build(text)

    headline = text.split(":")[0].strip() or "Unspecified hazard"
    severity = "high" if "danger" in lower else "medium"
    return Explanation(severity, f"{headline} - Safety concern")


# ---------------------------------------------------------------------------
# No warnings: describe the hour instead
# ---------------------------------------------------------------------------

# Beaufort upper bounds in km/h
BEAUFORT_LIMITS = [1, 5, 11, 19, 28, 38, 49, 61, 74, 88, 102, 117]

BEAUFORT_DESCRIPTIONS = {
    0: "Calm waters",
    1: "Light air",
    2: "Light breeze",
    3: "Gentle breeze",
    4: "Moderate breeze",
    5: "Fresh breeze",
    6: "Strong breeze",
    7: "High winds",
    8: "Gale force",
}


def beaufort_for(wind_kph) -> int:
    speed = to_number(wind_kph) or 0.0
    for force, limit in enumerate(BEAUFORT_LIMITS):
        if speed < limit:
            return force
    return 12


def describe_conditions(condition: HourlyCondition) -> list[Explanation]:
    details = []

    force = condition.beaufort
    if force is None and condition.wind_speed is not None:
        force = beaufort_for(condition.wind_speed)
    if force is not None:
        label = BEAUFORT_DESCRIPTIONS.get(force, "Severe winds")
        details.append(Explanation("high" if force >= 6 else "low", f"{label} (B{force})"))

    temp = condition.temperature
    if temp is not None:
        if temp > 40:
            details.append(Explanation("high", "Extreme heat"))
        elif temp > 32:
            details.append(Explanation("medium", "High heat index"))
        elif temp < 15:
            details.append(Explanation("medium", "Cold conditions"))

    vis = condition.visibility
    if vis is not None:
        if vis < 2:
            details.append(Explanation("high", "Poor visibility"))
        elif vis < 5:
            details.append(Explanation("medium", "Reduced visibility"))
        elif vis > 15:
            details.append(Explanation("low", "Excellent visibility"))

    return details


# ---------------------------------------------------------------------------
# Public API: classify()
# ---------------------------------------------------------------------------

def classify(rating, warnings=None, condition: HourlyCondition | None = None) -> SkillAssessment:
    """
    Skill band + explanations for a (re-scored) rating.

    With warnings: one explanation per warning, plus a MULTIPLE HAZARDS line
    once the warning deductions reach 2.0.
    Without warnings: a short description of `condition`, if given.
    """
    warnings = normalize_warnings(warnings)

    band, icon = skill_band(rating)
    value = to_number(rating)
    total = warning_deductions(warnings)

    if warnings:
        explanations = [explain_warning(w) for w in warnings]
        if total >= MULTIPLE_HAZARDS_THRESHOLD:
            explanations.append(
                Explanation("high", "MULTIPLE HAZARDS PRESENT - EXTREME CAUTION REQUIRED")
            )
    elif condition is not None:
        explanations = describe_conditions(condition)
    else:
        explanations = []

    return SkillAssessment(
        band=band,
        icon=icon,
        rating=DEFAULT_RATING if value is None else value,
        explanations=explanations,
        total_deduction=total,
    )


def contributing_factors(condition: HourlyCondition) -> tuple[str | None, list[str]]:
    """(indicator emoji, factor labels) describing what drives an hour's score."""
    temp = condition.temperature if condition.temperature is not None else 20
    wind = condition.wind_speed if condition.wind_speed is not None else 10
    vis = condition.visibility if condition.visibility is not None else 10
    humidity = condition.humidity if condition.humidity is not None else 50
    uv = condition.uv_index if condition.uv_index is not None else 3
    cloud = condition.cloud_cover if condition.cloud_cover is not None else 0

    factors = []
    if wind > 25:
        factors.append("High winds")
    elif wind < 10:
        factors.append("Calm winds")
    else:
        factors.append("Moderate winds")

    if temp < 15:
        factors.append("Cold temperature")
    elif temp > 30:
        factors.append("Hot temperature")
    else:
        factors.append("Good temperature")

    if vis < 5:
        factors.append("Poor visibility")
    elif vis > 15:
        factors.append("Clear visibility")
    else:
        factors.append("Fair visibility")

    if humidity > 80:
        factors.append("High humidity")
    if uv > 7:
        factors.append("High UV")

    if cloud > 80:
        factors.append("Overcast skies")
    elif cloud > 50:
        factors.append("Partly cloudy")
    elif cloud < 20:
        factors.append("Clear skies")
    else:
        factors.append("Some clouds")

    # most impactful factor wins
    indicator = None
    if wind > 25:
        indicator = "\U0001f4a8"                  # 💨
    elif temp < 10:
        indicator = "\U0001f9ca"                  # 🧊
    elif temp > 35:
        indicator = "\U0001f525"                  # 🔥
    elif vis < 3:
        indicator = "\U0001f32b️"            # 🌫️
    elif humidity > 85:
        indicator = "\U0001f4a7"                  # 💧
    elif uv > 8:
        indicator = "☀️"                # ☀️
    elif cloud > 85:
        indicator = "☁️"                # ☁️
    elif cloud < 15 and 18 < temp < 28 and wind < 15:
        indicator = "✨"                      # ✨

    return indicator, factors


def forecast_suggestion(upcoming: list[float], current: float) -> str:
    """
    Hint about the best paddling window.

    `upcoming` holds re-scored ratings for the following hours, nearest first
    (upcoming[0] is one hour from now).
    """
    for i, future in enumerate(upcoming[:47], 1):
        if future > current + 0.5:
            if i <= 6:
                return f"Conditions improve in {i}h"
            if i <= 24:
                return f"Better conditions in {i}h"
            return "Conditions improve tomorrow"

    if any(future < current - 0.5 for future in upcoming[:11]):
        return "Best window is now"
    return ""


# ---------------------------------------------------------------------------
# Plain-text report
# ---------------------------------------------------------------------------

def format_report(
    result: ForecastResult,
    hour: int,
    condition: HourlyCondition | None,
    assessment: SkillAssessment,
    day_ratings: list[dict[int, float]] | None = None,
) -> str:
    loc = result.location
    lines = [
        f"{assessment.icon} {assessment.band.upper()} | {loc.name.upper()}",
        f"Rating: {assessment.rating:.1f}/5.0 ({rating_label(assessment.rating)}) at {hour:02d}:00",
    ]
    if result.is_fallback:
        lines.append(f"Estimated conditions ({result.metadata.fallback_message})")

    if condition is not None:
        lines.append(
            f"Wind {condition.wind_speed or 0:.0f} km/h"
            f"{f' (gusts {condition.gust_speed:.0f})' if condition.gust_speed else ''}, "
            f"Temp {condition.temperature if condition.temperature is not None else 0:.0f}°C, "
            f"Vis {condition.visibility if condition.visibility is not None else 0:.0f} km"
        )

    if assessment.explanations:
        lines.append("")
        lines.extend(assessment.messages)

    if day_ratings:
        lines.append("")
        for day, ratings in zip(result.forecast, day_ratings):
            if not ratings:
                lines.append(f"{day.date.isoformat()}: no data")
                continue
            best_hour = max(ratings, key=lambda h: (ratings[h], -h))
            lines.append(
                f"{day.date.isoformat()}: best {ratings[best_hour]:.1f} at {best_hour:02d}:00, "
                f"worst {min(ratings.values()):.1f}"
            )

    return "\n".join(lines)
