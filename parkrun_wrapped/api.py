"""
HTTP API for runner results.

Endpoints:
1. GET /api/parkrunner/<runner_id>          -> ResultSet JSON
2. GET /api/parkrunner/<runner_id>/wrapped  -> runner info + year-in-review analytics
"""

from typing import Optional

from flask import Flask, jsonify

from .service import RetrievalError, RunnerDataService, build_service
from .utils.logging_utils import get_logger

logger = get_logger(__name__)


def create_app(service: Optional[RunnerDataService] = None) -> Flask:
    app = Flask(__name__)
    # Keep the ResultSet key order as produced
    app.json.sort_keys = False
    app.extensions["runner_service"] = service or build_service()

    @app.route("/api/parkrunner/<runner_id>")
    def runner_data(runner_id):
        try:
            result = app.extensions["runner_service"].get_runner_data(runner_id)
        except RetrievalError as e:
            logger.error("Error retrieving runner %s: %s", runner_id, e)
            return jsonify({"error": str(e)}), 500
        except Exception as e:  # noqa: BLE001
            logger.error("Unexpected error for runner %s: %s", runner_id, e, exc_info=True)
            return jsonify({"error": f"Failed to fetch parkrun data: {e}"}), 500
        return jsonify(result.to_dict())

    @app.route("/api/parkrunner/<runner_id>/wrapped")
    def runner_wrapped(runner_id):
        try:
            result, analytics = app.extensions["runner_service"].get_runner_analytics(runner_id)
        except RetrievalError as e:
            logger.error("Error retrieving runner %s: %s", runner_id, e)
            return jsonify({"error": str(e)}), 500
        except Exception as e:  # noqa: BLE001
            logger.error("Unexpected error for runner %s: %s", runner_id, e, exc_info=True)
            return jsonify({"error": f"Failed to fetch parkrun data: {e}"}), 500
        return jsonify({
            "runnerInfo": result.runner_info.to_dict(),
            "analytics": analytics.to_dict() if analytics else None,
        })

    return app
