"""
Authentication Service for Planet Heroes
Firebase Auth integration and binding of signed-in users to their Firestore profile
"""

from datetime import datetime, timezone
from urllib.parse import urlencode
import logging

from firebase_admin import auth

from models import USERS_COLLECTION, UserRole, new_profile
from services.auth_events import AuthStateRegistry
from services.session import Identity
from utils.error_handler import AuthenticationError, ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, store, sign_in_url='/login', auth_events=None):
        self.store = store
        self.sign_in_url_base = sign_in_url
        self.auth_events = auth_events or AuthStateRegistry()

    def sign_in_url(self, role=UserRole.STUDENT.value):
        """
        URL of the hosted sign-in page the browser is redirected to.
        role only picks the page wording; profiles are always bound as students.
        """
        role = self._check_role(role)
        separator = '&' if '?' in self.sign_in_url_base else '?'
        return f"{self.sign_in_url_base}{separator}{urlencode({'role': role})}"

    def current_redirect_result(self, id_token):
        """
        Resolve the identity behind a Firebase ID token returned by the sign-in redirect.
        Tokens issued before a sign-out are rejected. Returns None when there is no token.
        """
        if not id_token:
            return None

        try:
            decoded_token = auth.verify_id_token(id_token, check_revoked=True)
        except auth.ExpiredIdTokenError:
            logger.warning("Expired ID token provided")
            raise AuthenticationError("Token expired")
        except auth.RevokedIdTokenError:
            logger.warning("Revoked ID token provided")
            raise AuthenticationError("Token revoked")
        except auth.InvalidIdTokenError:
            logger.warning("Invalid ID token provided")
            raise AuthenticationError("Invalid token")
        except auth.UserDisabledError:
            logger.warning("ID token for a disabled user provided")
            raise AuthenticationError("User disabled")
        except ValueError as e:
            logger.warning(f"Malformed ID token: {str(e)}")
            raise AuthenticationError("Invalid token")

        return Identity.from_token(decoded_token)

    def handle_redirect_result(self, id_token):
        """
        Complete a sign-in: resolve the identity, bind it to a profile and announce it
        """
        identity = self.current_redirect_result(id_token)
        if identity is None:
            raise AuthenticationError("No token provided")

        created = self.create_or_update_user(identity)
        self.auth_events.signed_in(identity.subject_id)
        return identity, created

    def create_or_update_user(self, identity):
        """
        Create a student profile on first sign-in, otherwise only refresh lastActive.
        Teacher profiles are provisioned directly in Firestore.
        Returns True when a new profile was created.
        """
        now = datetime.now(timezone.utc)

        existing = self.store.get_document(USERS_COLLECTION, identity.subject_id)
        if existing is None:
            profile = new_profile(identity.email, identity.display_name, UserRole.STUDENT, now)
            self.store.set_document(USERS_COLLECTION, identity.subject_id, profile)
            logger.info(f"Created new student profile for user: {identity.subject_id}")
            return True

        self.store.set_document(
            USERS_COLLECTION, identity.subject_id, {'lastActive': now}, merge=True
        )
        logger.info(f"User signed in: {identity.subject_id}")
        return False

    def sign_out(self, subject_id):
        """
        Revoke the user's refresh tokens and announce the sign-out
        """
        try:
            auth.revoke_refresh_tokens(subject_id)
        except auth.UserNotFoundError:
            logger.warning(f"Sign-out for unknown user: {subject_id}")
        except Exception as e:
            logger.error(f"Error signing out user {subject_id}: {str(e)}")
            raise ExternalServiceError(f"Failed to sign out: {str(e)}", service_name='firebase_auth')
        finally:
            self.auth_events.signed_out(subject_id)

        logger.info(f"User signed out: {subject_id}")

    def on_auth_change(self, subject_id, callback):
        """
        Subscribe to sign-in / sign-out transitions of one subject; returns unsubscribe
        """
        return self.auth_events.subscribe(subject_id, callback)

    def _check_role(self, role):
        try:
            return UserRole(role).value
        except ValueError:
            raise ValidationError(f"Unknown role: {role}", field='role')
