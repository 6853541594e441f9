import os
from typing import Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from werkzeug.exceptions import MethodNotAllowed as WerkzeugMethodNotAllowed
from werkzeug.exceptions import RequestEntityTooLarge

from menu_decoder.config import Settings, load_settings
from menu_decoder.errors import (
    ConfigurationMissing,
    InternalFault,
    InvalidRequest,
    MenuDecoderError,
    MethodNotAllowed,
    PayloadTooLarge,
)
from menu_decoder.logging_config import logger
from menu_decoder.menu_extraction.constants import DEFAULT_LANGUAGE
from menu_decoder.pipeline import MenuDecoder, build_decoder
from menu_decoder.utils.image_utils import decode_image_payload

DECODE_PATH = "/api/decode-menu"

DECODE_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _error_response(error: MenuDecoderError):
    return jsonify({"error": error.message}), error.status_code


def create_app(settings: Optional[Settings] = None, decoder: Optional[MenuDecoder] = None) -> Flask:
    """
    Builds the Flask app. The decoder (and with it every provider client) is
    created here once and shared read-only by all requests. If configuration
    is missing the app still starts and each decode request reports it.
    """
    settings = settings or load_settings()
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_request_bytes
    # The decode endpoint sets its own fixed CORS headers below
    CORS(app, resources={r"/health": {"origins": settings.frontend_url}})

    config_error: Optional[ConfigurationMissing] = None
    if decoder is None:
        try:
            decoder = build_decoder(settings)
        except ConfigurationMissing as e:
            logger.error("Menu decoder is not configured: %s", e.message)
            config_error = e

    @app.after_request
    def add_decode_cors_headers(response):
        if request.path == DECODE_PATH:
            response.headers.update(DECODE_CORS_HEADERS)
        return response

    @app.errorhandler(MenuDecoderError)
    def handle_decoder_error(error: MenuDecoderError):
        return _error_response(error)

    @app.errorhandler(WerkzeugMethodNotAllowed)
    def handle_method_not_allowed(_):
        return _error_response(MethodNotAllowed())

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(_):
        return _error_response(PayloadTooLarge())

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return jsonify({"error": error.name}), error.code
        logger.exception("Unhandled error while decoding menu")
        return _error_response(InternalFault())

    @app.route("/health")
    def health_check():
        if config_error is not None:
            return jsonify({
                "status": "misconfigured",
                "message": config_error.message,
                "mock_mode": settings.mock_mode,
            }), 200
        return jsonify({
            "status": "healthy",
            "extractor": decoder.extractor.name,
            "illustrator": decoder.illustrator.name,
            "mock_mode": settings.mock_mode,
        }), 200

    @app.route(DECODE_PATH, methods=["POST", "OPTIONS"])
    def decode_menu():
        if request.method == "OPTIONS":
            return Response(status=200)

        data = request.get_json(silent=True)
        image = data.get("image") if isinstance(data, dict) else None
        if not image:
            raise InvalidRequest("No image provided")

        if config_error is not None:
            raise ConfigurationMissing(config_error.message)

        language = data.get("language")
        if not isinstance(language, str) or not language.strip():
            language = DEFAULT_LANGUAGE

        image_bytes = decode_image_payload(image)
        logger.info("Received base64 image for decoding (%d bytes)", len(image_bytes))
        payload = decoder.decode(image_bytes, language.strip())
        return jsonify(payload.to_json()), 200

    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 3000))
    create_app().run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG") == "1")
