"""
cli.py -- Command-line client for the paddle conditions forecast.

Enter a coordinate ("37.7749, -122.4194") to get the current safety rating,
its skill band, the reasons behind it, and a 3-day best/worst summary.

Usage:  python cli.py [--debug]
"""

import sys

from config import Settings
from coordinates import InvalidCoordinateError, estimate_utc_offset_hours, format_utc_offset
from parser.coord_parser import parse_coordinates
from pipeline import ForecastService, current_conditions, rate_forecast, rate_hour
from risk.response import forecast_suggestion, format_report
from utils.logger import setup_logging


def report_for(service: ForecastService, text: str) -> str:
    coord = parse_coordinates(text)
    result = service.get_forecast(coord.latitude, coord.longitude)

    hour, condition = current_conditions(result)
    assessment = rate_hour(condition)
    ratings = rate_forecast(result)

    report = format_report(result, hour, condition, assessment, ratings)
    upcoming = [r for h, r in sorted(ratings[0].items()) if h > hour]
    upcoming += [r for day in ratings[1:] for _, r in sorted(day.items())]
    hint = forecast_suggestion(upcoming, assessment.rating)
    offset = format_utc_offset(estimate_utc_offset_hours(coord))

    extra = [f"Local time zone (est.): {offset}"]
    if hint:
        extra.append(hint)
    return report + "\n\n" + "\n".join(extra)


def main():
    settings = Settings.from_env()
    setup_logging("DEBUG" if "--debug" in sys.argv else "WARNING")
    service = ForecastService(settings=settings)

    print("=== Paddle Conditions (CLI) ===")
    print("Type a coordinate like '37.7749, -122.4194'.")
    print("Type 'quit' or 'exit' to leave.\n")

    while True:
        try:
            text = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            break

        if not text:
            continue

        if text.lower() in ("quit", "exit"):
            print("Bye!")
            break

        try:
            print(f"\n{report_for(service, text)}\n")
        except InvalidCoordinateError as e:
            print(f"\n{e}\n")


if __name__ == "__main__":
    main()
