"""
CineLog - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class CineLogException(Exception):
    """Base exception for CineLog"""
    status_code = 400

    def __init__(self, message: str, code: str = "CINELOG_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self):
        return {
            'success': False,
            'code': self.code,
            'message': self.message
        }


class DatabaseException(CineLogException):
    """Datastore write or read failures"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, code="DATABASE_ERROR")
        logger.error(f"Database error: {message}")


class MetadataProviderException(CineLogException):
    """TMDB request failures (network, non-2xx, malformed body)"""
    status_code = 502

    def __init__(self, message: str):
        super().__init__(message, code="METADATA_PROVIDER_ERROR")
        logger.warning(f"Metadata provider error: {message}")


class ValidationException(CineLogException):
    """Invalid user input, raised before any I/O"""
    status_code = 400

    def __init__(self, message: str, field: str = None):
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field
        logger.warning(f"Validation error: {message}", field=field)

    def to_dict(self):
        data = super().to_dict()
        if self.field:
            data['details'] = {'field': self.field, 'error': self.message}
        return data


class AuthenticationException(CineLogException):
    """Authentication-related exceptions"""
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="UNAUTHORIZED")
        logger.warning(f"Authentication error: {message}")


class AuthorizationException(CineLogException):
    """Authorization-related exceptions"""
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, code="FORBIDDEN")
        logger.warning(f"Authorization error: {message}")


class NotFoundException(CineLogException):
    status_code = 404

    def __init__(self, resource_type: str, resource_id=None):
        if resource_id is not None:
            message = f"{resource_type} with ID '{resource_id}' not found"
        else:
            message = f"{resource_type} not found"
        super().__init__(message, code="NOT_FOUND")


class ConflictException(CineLogException):
    """Requested transition is not valid from the current state"""
    status_code = 409

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")
        logger.info(f"Conflict: {message}")


class DuplicateEntryException(CineLogException):
    """Unique constraint violation on insert"""
    status_code = 409

    def __init__(self, message: str = "Entry already exists"):
        super().__init__(message, code="CONFLICT")


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        return jsonify({
            'success': False,
            'code': e.name.upper().replace(' ', '_'),
            'message': e.description
        }), e.code

    @app.errorhandler(CineLogException)
    def handle_cinelog_exception(e):
        """Handle CineLog custom exceptions"""
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'success': False,
            'code': 'INTERNAL_ERROR',
            'message': 'An unexpected error occurred'
        }), 500
