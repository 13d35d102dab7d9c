from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from flask import Flask, current_app, request

from .config import Settings
from .core import InvalidOrderError, parse_order
from .jobs import JobStatus, submit_print_job
from .printer import make_delivery
from .receipt import ReceiptEncoder, ReceiptMode


def _json(payload: Dict[str, Any], status: int = 200):
    return (json.dumps(payload), status, {"Content-Type": "application/json"})


def _destinations(body: Dict[str, Any], default: str) -> List[str]:
    """``devicePath`` may be one destination or an ordered list of fallbacks."""
    value = body.get("devicePath")
    if value is None or value == "" or value == []:
        return [default] if default else []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise InvalidOrderError("'devicePath' must be a string or a list of strings")
    if any("\x00" in v for v in value):
        raise InvalidOrderError("'devicePath' must not contain NUL characters")
    return list(value)


def _mode(body: Dict[str, Any]) -> ReceiptMode:
    is_checker = body.get("isChecker", False)
    if not isinstance(is_checker, bool):
        raise InvalidOrderError("'isChecker' must be true or false")
    return ReceiptMode.CHECKER if is_checker else ReceiptMode.FULL


def _body() -> Optional[Dict[str, Any]]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else None


def create_app(
    settings: Optional[Settings] = None,
    encoder: Optional[ReceiptEncoder] = None,
    delivery=None,
) -> Flask:
    settings = settings or Settings.from_env()

    app = Flask(__name__)
    app.config["SETTINGS"] = settings
    app.config["ENCODER"] = encoder or settings.make_encoder()
    app.config["DELIVERY"] = delivery or make_delivery(settings)

    @app.route("/print", methods=["POST"])
    def print_receipt():
        body = _body()
        if body is None or body.get("data") is None:
            return _json({"success": False, "error": "Data is required"}, 400)

        try:
            destinations = _destinations(body, settings.default_destination)
            mode = _mode(body)
        except InvalidOrderError as e:
            return _json({"success": False, "error": str(e)}, 400)

        outcome = submit_print_job(
            body["data"],
            destinations,
            mode,
            current_app.config["ENCODER"],
            current_app.config["DELIVERY"],
        )
        if outcome.status is JobStatus.DELIVERED:
            current_app.logger.info("Printed %s copy to %s", mode.value, outcome.destination)
            return _json({"success": True, "method": outcome.method, "destination": outcome.destination})
        if outcome.status is JobStatus.INVALID_INPUT:
            current_app.logger.warning("Rejected print request: %s", outcome.error)
            return _json({"success": False, "error": outcome.error}, 400)
        current_app.logger.error("Print job failed on %d destination(s): %s", len(outcome.attempts), outcome.error)
        return _json({"success": False, "error": f"Print failed. Last error: {outcome.error}"}, 500)

    @app.route("/preview", methods=["POST"])
    def preview_receipt():
        body = _body()
        if body is None or body.get("data") is None:
            return _json({"success": False, "error": "Data is required"}, 400)
        try:
            mode = _mode(body)
            order = parse_order(body["data"])
            text = current_app.config["ENCODER"].preview(order, mode)
        except InvalidOrderError as e:
            return _json({"success": False, "error": str(e)}, 400)
        return _json({"success": True, "text": text})

    @app.route("/health", methods=["GET"])
    def health():
        return _json(
            {
                "success": True,
                "delivery": settings.delivery,
                "destination": settings.default_destination,
                "columns": settings.columns,
            }
        )

    return app
