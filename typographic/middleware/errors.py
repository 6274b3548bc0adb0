"""
Error handlers.

Every failure is answered with ``{"error": true, "message": <client message>}``.
The underlying error is logged; the client only sees the generic message.
"""
from flask import jsonify
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from typographic.database import db
from typographic.errors import DEFAULT_CLIENT_MESSAGE, TypographicError
from typographic.infra.log import get_logger

logger = get_logger('typographic.errors')


def error_body(client_message: str = DEFAULT_CLIENT_MESSAGE, **extra):
    body = {'error': True, 'message': client_message}
    body.update(extra)
    return body


def register_error_handlers(app):
    """Register JSON error handlers on the app."""

    @app.errorhandler(TypographicError)
    def handle_app_error(e):
        if e.status >= 500:
            logger.error(e.message, error_type=type(e).__name__, status=e.status)
        else:
            logger.warning(e.message, error_type=type(e).__name__, status=e.status)
        return jsonify(error_body(e.client_message)), e.status

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        logger.warning(f"Invalid request body: {e.messages}")
        return jsonify(error_body('Invalid request.', details=e.messages)), 400

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        db.session.rollback()
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
        logger.error(f"Database integrity error: {error_msg}")

        if 'unique' in error_msg.lower() or 'duplicate' in error_msg.lower():
            return jsonify(error_body('That resource already exists.')), 409

        return jsonify(error_body()), 500

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify(error_body(e.description or DEFAULT_CLIENT_MESSAGE)), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        logger.exception(f"Unhandled error: {e}", error_type=type(e).__name__)
        return jsonify(error_body()), 500
