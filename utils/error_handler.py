"""
Error Handler for Planet Heroes
Centralized error handling and logging
"""

from flask import jsonify
import logging
import traceback

logger = logging.getLogger(__name__)

class PlanetHeroesError(Exception):
    """Base exception class for the Planet Heroes backend"""
    def __init__(self, message, status_code=500, error_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code

class ValidationError(PlanetHeroesError):
    """Raised when input validation fails"""
    def __init__(self, message, field=None):
        super().__init__(message, status_code=400, error_code='VALIDATION_ERROR')
        self.field = field

class AuthenticationError(PlanetHeroesError):
    """Raised when authentication fails"""
    def __init__(self, message):
        super().__init__(message, status_code=401, error_code='AUTH_ERROR')

class AuthorizationError(PlanetHeroesError):
    """Raised when user lacks required permissions"""
    def __init__(self, message):
        super().__init__(message, status_code=403, error_code='PERMISSION_ERROR')

class NotFoundError(PlanetHeroesError):
    """Raised when requested resource is not found"""
    def __init__(self, message):
        super().__init__(message, status_code=404, error_code='NOT_FOUND')

class GameInProgressError(PlanetHeroesError):
    """Raised when a second game is started while one is still running"""
    def __init__(self, message):
        super().__init__(message, status_code=409, error_code='GAME_IN_PROGRESS')

class DatabaseError(PlanetHeroesError):
    """Raised when database operation fails"""
    def __init__(self, message):
        super().__init__(message, status_code=500, error_code='DATABASE_ERROR')

class ExternalServiceError(PlanetHeroesError):
    """Raised when external service call fails"""
    def __init__(self, message, service_name=None):
        super().__init__(message, status_code=503, error_code='SERVICE_ERROR')
        self.service_name = service_name

def handle_error(error):
    """
    Central error handler that converts exceptions to JSON responses
    """
    if isinstance(error, PlanetHeroesError):
        if error.status_code >= 500:
            logger.error(f"Planet Heroes error: {error.message}")
        else:
            logger.warning(f"Planet Heroes error: {error.message}")
        return jsonify({
            'error': error.message,
            'error_code': error.error_code,
            'status': 'error'
        }), error.status_code

    elif isinstance(error, ValueError):
        logger.warning(f"Validation error: {str(error)}")
        return jsonify({
            'error': str(error),
            'error_code': 'VALIDATION_ERROR',
            'status': 'error'
        }), 400

    # Firebase and connection errors
    elif 'firebase_admin' in str(type(error)) or isinstance(error, (ConnectionError, TimeoutError)):
        logger.error(f"Service error: {str(error)}")
        return jsonify({
            'error': 'Service temporarily unavailable',
            'error_code': 'SERVICE_ERROR',
            'status': 'error'
        }), 503

    logger.error(f"Unhandled error: {str(error)}")
    logger.error(traceback.format_exc())

    return jsonify({
        'error': 'An unexpected error occurred',
        'error_code': 'INTERNAL_ERROR',
        'status': 'error'
    }), 500

def validate_request_data(data, required_fields, optional_fields=None):
    """
    Validate request data against required and optional fields
    """
    if not data:
        raise ValidationError("Request body cannot be empty")

    missing_fields = [
        field for field in required_fields
        if field not in data or data[field] is None
    ]
    if missing_fields:
        raise ValidationError(f"Missing required fields: {', '.join(missing_fields)}")

    # Validate field types if specified
    if optional_fields:
        for field, expected_type in optional_fields.items():
            if field in data and data[field] is not None:
                if not isinstance(data[field], expected_type):
                    raise ValidationError(
                        f"Field '{field}' must be of type {expected_type.__name__}",
                        field=field
                    )

    return True
