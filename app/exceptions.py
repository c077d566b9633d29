"""
SteamSentinel - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class SteamSentinelException(Exception):
    """Base exception for SteamSentinel"""
    status_code = 400

    def __init__(self, message: str, code: str = "STEAMSENTINEL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self):
        return {
            'success': False,
            'code': self.code,
            'error': self.message
        }


class DatabaseException(SteamSentinelException):
    """Database-related exceptions"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, code="DATABASE_ERROR")
        logger.error(f"Database error: {message}")


class FeedException(SteamSentinelException):
    """RSS feed fetch or parse failures"""
    status_code = 502

    def __init__(self, message: str):
        super().__init__(message, code="FEED_ERROR")
        logger.warning(f"Feed error: {message}")


class StoreAPIException(SteamSentinelException):
    """Steam store API failures"""
    status_code = 502

    def __init__(self, message: str):
        super().__init__(message, code="STORE_API_ERROR")
        logger.warning(f"Store API error: {message}")


class ValidationException(SteamSentinelException):
    """Validation-related exceptions"""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")
        logger.warning(f"Validation error: {message}")


class NotFoundException(SteamSentinelException):
    """Requested record does not exist"""
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, code="NOT_FOUND")


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        return jsonify({
            'success': False,
            'code': e.name.upper().replace(' ', '_'),
            'error': e.description
        }), e.code

    @app.errorhandler(SteamSentinelException)
    def handle_steamsentinel_exception(e):
        """Handle SteamSentinel custom exceptions with their own status code"""
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'success': False,
            'code': 'INTERNAL_ERROR',
            'error': 'An unexpected error occurred'
        }), 500
