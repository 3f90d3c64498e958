"""Flask file service: the ``/readFile`` and ``/writeFile`` endpoint pair.

This is the server half of RemoteFileTransport. Writes are serialized with a
lock so appends from different clients never interleave.
"""

import logging
import os
import threading

from flask import Flask, Response, jsonify, request

from prompt_logger.errors import TransportError
from prompt_logger.transport import FILE_NOT_FOUND, resolve_path

logger = logging.getLogger(__name__)

CSRF_HEADER = "X-CSRF-Token"


def create_app(root_dir: str, token: str | None = None) -> Flask:
    """Flask application factory."""
    app = Flask(__name__)
    app.config["ROOT_DIR"] = root_dir
    app.config["CSRF_TOKEN"] = token
    write_lock = threading.Lock()
    os.makedirs(root_dir, exist_ok=True)

    def _error(status, message):
        return jsonify({"status": "error", "message": message}), status

    def _resolve(body):
        path = body.get("path") if isinstance(body, dict) else None
        if not path or not isinstance(path, str):
            return None
        try:
            return resolve_path(app.config["ROOT_DIR"], path)
        except TransportError:
            return None

    @app.before_request
    def check_token():
        expected = app.config["CSRF_TOKEN"]
        if expected and request.method == "POST":
            if request.headers.get(CSRF_HEADER) != expected:
                logger.warning("Rejected %s: bad or missing CSRF token", request.path)
                return _error(403, "invalid CSRF token")
        return None

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/readFile", methods=["POST"])
    def read_file():
        body = request.get_json(force=True, silent=True)
        full = _resolve(body)
        if full is None:
            return _error(400, "invalid path")
        if not os.path.isfile(full):
            return _error(404, FILE_NOT_FOUND)
        with open(full, "r", encoding="utf-8", errors="replace", newline="") as f:
            content = f.read()
        return Response(content, mimetype="text/plain")

    @app.route("/writeFile", methods=["POST"])
    def write_file():
        body = request.get_json(force=True, silent=True)
        full = _resolve(body)
        if full is None:
            return _error(400, "invalid path")

        if body.get("type") == "directory":
            if os.path.isdir(full):
                return _error(409, "directory already exists")
            if os.path.exists(full):
                return _error(400, "path exists and is not a directory")
            try:
                os.makedirs(full, exist_ok=True)
            except OSError as e:
                logger.warning("Failed to create directory %s: %s", body["path"], e)
                return _error(400, "cannot create directory")
            return jsonify({"status": "ok"})

        content = body.get("content") or ""
        if not isinstance(content, str):
            return _error(400, "content must be a string")
        mode = "a" if body.get("append") else "w"
        with write_lock:
            os.makedirs(os.path.dirname(full), exist_ok=True)
            with open(full, mode, encoding="utf-8", newline="") as f:
                f.write(content)
        logger.debug("%s %d chars to %s", "Appended" if mode == "a" else "Wrote",
                     len(content), body["path"])
        return jsonify({"status": "ok"})

    return app
