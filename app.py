"""
app.py — Flask entry point for the paddle conditions API.

Exposes:
    GET /forecast?lat=..&lng=..  — 3-day forecast + re-scored current hour
    GET /current?lat=..&lng=..   — live current conditions, re-scored
    GET /health                  — simple health check

Bridges:
    parser/   → reads lat/lng from the query string
    pipeline  → ForecastService + per-hour re-scoring
"""

import logging

from flask import Flask, jsonify, request

from config import Settings
from coordinates import InvalidCoordinateError
from data.upstream import UpstreamError
from parser.coord_parser import parse_query
from pipeline import ForecastService, current_conditions, rate_forecast, rate_hour
from utils.logger import setup_logging

logger = logging.getLogger(__name__)


def create_app(service: ForecastService | None = None, settings: Settings | None = None) -> Flask:
    settings = settings or Settings.from_env()
    app = Flask(__name__)
    app.config["FORECAST_SERVICE"] = service or ForecastService(settings=settings)

    @app.errorhandler(InvalidCoordinateError)
    def invalid_coordinate(e):
        return jsonify({"success": False, "error": str(e)}), 400

    @app.errorhandler(UpstreamError)
    def upstream_failed(e):
        return jsonify({"success": False, "error": str(e), "reason": e.reason}), 502

    @app.route("/forecast", methods=["GET"])
    def forecast():
        """
        Flow:
          1. Parse lat/lng
          2. ForecastService.get_forecast() (api or fallback, never fails)
          3. Re-score the hour that is "now" at the location
        """
        coord = parse_query(request.args)
        svc: ForecastService = app.config["FORECAST_SERVICE"]
        result = svc.get_forecast(coord.latitude, coord.longitude)

        hour, condition = current_conditions(result)
        assessment = rate_hour(condition)

        body = result.to_dict()
        body["current"] = {
            "hour": hour,
            "estimated": result.is_fallback,
            **assessment.to_dict(),
        }
        body["ratings"] = [
            {str(h): r for h, r in day.items()} for day in rate_forecast(result)
        ]
        return jsonify(body), 200

    @app.route("/current", methods=["GET"])
    def current():
        coord = parse_query(request.args)
        svc: ForecastService = app.config["FORECAST_SERVICE"]
        condition = svc.get_current(coord.latitude, coord.longitude)
        assessment = rate_hour(condition)
        return jsonify({
            "success": True,
            "current": condition.to_dict(),
            "safety": assessment.to_dict(),
        }), 200

    @app.route("/health", methods=["GET"])
    def health():
        """Simple health check."""
        return {"status": "ok"}, 200

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    create_app(settings=settings).run(host="0.0.0.0", port=settings.port, debug=settings.debug)
