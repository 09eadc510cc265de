"""
Authentication Middleware for Planet Heroes
Handles Firebase token validation and builds the per-request session
"""

from functools import wraps
from flask import current_app, request
import logging

from models import USERS_COLLECTION, UserRole
from services.session import Session
from utils.error_handler import AuthenticationError, AuthorizationError, handle_error

logger = logging.getLogger(__name__)

def get_bearer_token():
    """
    Extract the token from the Authorization header, or '' when absent
    """
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header[len('Bearer '):].strip()
    return auth_header.strip()

def get_session_from_token(token):
    """
    Verify the token and load the caller's role from their profile
    """
    services = current_app.extensions['planet_heroes']
    identity = services['auth'].current_redirect_result(token)
    if identity is None:
        raise AuthenticationError("Authorization header required")

    profile = services['store'].get_document(USERS_COLLECTION, identity.subject_id) or {}
    return Session(identity=identity, role=profile.get('role', UserRole.STUDENT.value))

def require_auth(f):
    """
    Decorator to require authentication; the view receives the session as `session`
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            kwargs['session'] = get_session_from_token(get_bearer_token())
        except Exception as e:
            return handle_error(e)
        return f(*args, **kwargs)

    return decorated_function

def require_teacher(f):
    """
    Decorator to require a teacher profile
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            session = get_session_from_token(get_bearer_token())
            if not session.is_teacher:
                logger.warning(f"Non-teacher user attempted teacher action: {session.user_id}")
                raise AuthorizationError("Teacher privileges required")
        except Exception as e:
            return handle_error(e)

        kwargs['session'] = session
        return f(*args, **kwargs)

    return decorated_function
