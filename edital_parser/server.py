"""
HTTP Microservice
=================
Flask-based HTTP API for the edital parser engine.

Endpoints:
    POST   /api/parse         → Parse an edital (upload, text or file path)
    GET    /api/health        → Health check
    GET    /api/info          → Parser version info
"""

from __future__ import annotations

import logging
import os

from flask import Flask, jsonify, request
from flask_cors import CORS

from . import __version__
from .engine import ParserConfig, ParserEngine

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)


def create_app(config: dict = None) -> Flask:
    """Create and configure the Flask app."""
    if config:
        app.config.update(config)

    app.config.setdefault("OUTPUT_DIR", None)
    app.config.setdefault("LOG_LEVEL", "INFO")
    app.config.setdefault("MAX_CONTENT_LENGTH", 50 * 1024 * 1024)  # 50MB

    return app


def _engine() -> ParserEngine:
    return ParserEngine(ParserConfig(
        output_dir=app.config.get("OUTPUT_DIR"),
        log_level=app.config.get("LOG_LEVEL", "INFO"),
    ))


# ─── Health Check ─────────────────────────────────────────────────────────────


@app.route("/api/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "edital-parser",
        "version": __version__,
    })


@app.route("/api/info", methods=["GET"])
def info():
    """Parser version and capability info."""
    return jsonify({
        "version": __version__,
        "engine": "PyMuPDF",
        "capabilities": [
            "text_extraction",
            "classification",
            "prevalidation",
            "syllabus_parsing",
            "weight_extraction",
            "ux_decision",
        ],
        "supported_formats": ["pdf", "txt"],
    })


# ─── Parse Endpoint ──────────────────────────────────────────────────────────


@app.route("/api/parse", methods=["POST"])
def parse_edital():
    """
    Parse an edital synchronously.

    Accepts either:
        - A file upload (multipart/form-data, field "file"); PDF or UTF-8 text
        - A JSON body with "text" (and optional "extraction_error")
        - A JSON body with "file_path" pointing to an existing file

    Returns the processing report: result, decision and run metadata.
    """
    engine = _engine()

    try:
        if "file" in request.files:
            file = request.files["file"]
            if not file.filename:
                return jsonify({"error": "No file selected"}), 400

            data = file.read()
            if file.filename.lower().endswith(".pdf"):
                report = engine.process_bytes(data, source=file.filename)
            else:
                report = engine.process_text(
                    data.decode("utf-8", errors="replace"),
                    source=file.filename,
                )

        elif request.is_json:
            payload = request.get_json(silent=True) or {}

            if "text" in payload:
                text = payload["text"]
                if not isinstance(text, str):
                    return jsonify({"error": "'text' must be a string"}), 400
                extraction_error = payload.get("extraction_error")
                if extraction_error is not None:
                    extraction_error = str(extraction_error)
                report = engine.process_text(
                    text,
                    source=payload.get("source", "<text>"),
                    extraction_error=extraction_error,
                )

            elif "file_path" in payload:
                path = payload["file_path"]
                if not path or not os.path.exists(path):
                    return jsonify({"error": f"File not found: {path}"}), 404
                report = engine.process_file(path)

            else:
                return jsonify({
                    "error": "Provide 'text' or 'file_path' in the JSON body"
                }), 400
        else:
            return jsonify({
                "error": "Provide a file upload or a JSON body"
            }), 400

    except Exception as e:
        logger.error(f"Parse request failed: {e}")
        return jsonify({"error": str(e)}), 500

    return jsonify(report.model_dump(mode="json")), 200


# ─── Entry Point ──────────────────────────────────────────────────────────────


def run_server(
    host: str = "0.0.0.0",
    port: int = 5000,
    debug: bool = False,
):
    """Start the microservice server."""
    create_app()
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)
