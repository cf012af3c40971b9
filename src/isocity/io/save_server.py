from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from flask import Flask, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from .persistence import FileStore, validate_document


logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 8 * 1024 * 1024


def handle_save_request(method: str, body: bytes, store: FileStore) -> tuple[int, dict[str, Any]]:
    """Accept a whole map document and store it; returns ``(http_status, reply)``."""
    if method != "POST":
        return 405, {"status": "error", "message": "Method Not Allowed"}
    try:
        document = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        document = None
    if validate_document(document) is not None:
        return 400, {"status": "error", "message": "Invalid JSON payload."}
    result = store.save(document)
    if not result.ok:
        return 500, {"status": "error", "message": result.message}
    return 200, {"status": "success", "message": result.message}


def create_app(target: str | Path) -> Flask:
    store = FileStore(target)
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = MAX_BODY_BYTES

    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(_exc):
        return jsonify({"status": "error", "message": "Payload too large."}), 413

    # Every method lands here so a wrong one still gets a JSON reply.
    @app.route("/", methods=["GET", "POST", "PUT", "DELETE"])
    @app.route("/save", methods=["GET", "POST", "PUT", "DELETE"])
    def save():
        status, payload = handle_save_request(request.method, request.get_data(cache=False), store)
        logger.info("%s %s -> %s", request.method, request.path, status)
        return jsonify(payload), status

    return app
