"""
HTTP relay for minting attendance NFTs and serving their metadata.

Endpoints:
    POST /api/mint                 mint a token to ``recipient`` with ``metadata``
    GET  /api/metadata/<tokenId>   display descriptor for a token
    GET  /<path>                   pre-built front end (falls back to index.html)
"""
import logging
import os
from typing import Optional

from flask import Flask, current_app, jsonify, request, send_from_directory
from flask_cors import CORS
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from .client import AttendanceClient
from .config import Settings
from .exceptions import AttendanceNFTError, ErrorKind, InvalidRequestError
from .models import ErrorResponse, MintRequest

logger = logging.getLogger(__name__)

CLIENT_EXTENSION = "attendance_client"


def build_client(settings: Settings) -> AttendanceClient:
    """Create the chain client used by the relay from settings."""
    settings.require_chain()
    return AttendanceClient(
        contract_address=settings.contract_address,
        rpc_url=settings.rpc_url,
        priv_key=settings.private_key,
        timeout=settings.chain_timeout,
        image_base_url=settings.image_base_url,
    )


def _error_response(message: str, kind: ErrorKind, status: int):
    body = ErrorResponse(error=message, kind=kind.value)
    return jsonify(body.model_dump()), status


def _client() -> AttendanceClient:
    return current_app.extensions[CLIENT_EXTENSION]


def create_app(settings: Optional[Settings] = None, client: Optional[AttendanceClient] = None) -> Flask:
    """
    Create the relay application

    Args:
        settings: Relay settings (read from the environment if None)
        client: Chain client to relay to (built from settings if None)

    Returns:
        Configured Flask application
    """
    settings = settings or Settings.from_env()
    if client is None:
        client = build_client(settings)

    app = Flask(__name__, static_folder=None)
    CORS(app, origins=[settings.frontend_url])
    app.extensions[CLIENT_EXTENSION] = client
    static_dir = os.path.abspath(settings.static_dir)

    @app.route("/api/mint", methods=["POST"])
    def mint():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise InvalidRequestError("Request body must be a JSON object")
        try:
            mint_request = MintRequest.model_validate(body)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise InvalidRequestError(f"Invalid mint request: {fields}") from e

        result = _client().mint_attendance(mint_request.recipient, mint_request.metadata)
        return jsonify(result.model_dump(by_alias=True))

    @app.route("/api/metadata/<token_id>", methods=["GET"])
    def metadata(token_id):
        descriptor = _client().describe_token(token_id)
        return jsonify(descriptor.model_dump())

    @app.route("/", defaults={"path": ""})
    @app.route("/<path:path>")
    def frontend(path):
        if path and os.path.isfile(os.path.join(static_dir, path)):
            return send_from_directory(static_dir, path)
        if os.path.isfile(os.path.join(static_dir, "index.html")):
            return send_from_directory(static_dir, "index.html")
        return jsonify({"success": False, "error": "Front-end build not found"}), 404

    @app.errorhandler(AttendanceNFTError)
    def handle_attendance_error(error: AttendanceNFTError):
        if isinstance(error, InvalidRequestError):
            logger.warning(f"Rejected request to {request.path}: {error}")
            return _error_response(str(error), error.kind, 400)
        logger.error(f"Error handling {request.path} ({error.kind.value}): {error}")
        return _error_response(str(error), error.kind, 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            return error
        logger.exception(f"Unexpected error handling {request.path}")
        return _error_response(str(error), ErrorKind.INTERNAL, 500)

    return app
