from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request

from hydrabot.parser_engine.exclusions import contains_excluded_beverage
from hydrabot.parser_engine.onboarding import DEFAULT_BOTTLE_SIZE_ML, parse_bottle_size_response
from hydrabot.parser_engine.resolver import IntentResolver
from hydrabot.parser_engine.router import parse_text_message

api = Blueprint("api", __name__)


def _get_resolver() -> IntentResolver:
    """
    Resolver shared by requests. Holds only configuration (GPT key, clock),
    so reusing it across messages is safe.
    """
    resolver = current_app.config.get("INTENT_RESOLVER")
    if resolver is None:
        resolver = IntentResolver()
        current_app.config["INTENT_RESOLVER"] = resolver
    return resolver


@api.route("/", methods=["GET"])
def healthcheck() -> str:
    return "hydrabot running"


@api.route("/parse", methods=["POST"])
def parse() -> Any:
    """
    Parse one chat message into a water intent.

    Body: {"text": "...", "bottle_size_ml": 750}

    Excluded drinks (coffee, tea, juice, ...) are answered here and never
    reach the resolver.
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    raw_text = str(payload.get("text") or "").strip()
    if not raw_text:
        return jsonify({"ok": False, "error": "text is required"}), 400

    bottle_size_ml = payload.get("bottle_size_ml", DEFAULT_BOTTLE_SIZE_ML)
    if isinstance(bottle_size_ml, bool) or not isinstance(bottle_size_ml, int):
        return jsonify({"ok": False, "error": "bottle_size_ml must be an integer"}), 400

    if contains_excluded_beverage(raw_text):
        logging.info("[EXCLUDED] %r", raw_text)
        return jsonify({"ok": True, "excluded": True})

    try:
        parsed = parse_text_message(raw_text, bottle_size_ml, resolver=_get_resolver())
    except Exception as e:  # noqa: BLE001
        logging.exception("[PARSER ERROR] %s", e)
        return jsonify({"ok": False, "error": "internal parser error"}), 500

    logging.info("[PARSED] %r -> %s", raw_text, parsed)
    return jsonify({"ok": True, "excluded": False, "result": parsed})


@api.route("/bottle-size", methods=["POST"])
def bottle_size() -> Any:
    """Onboarding answer ("yes", "1 liter", "600") -> bottle size in ml or null."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    raw_text = str(payload.get("text") or "")
    return jsonify({"ok": True, "bottle_size_ml": parse_bottle_size_response(raw_text)})
