"""
Planet Heroes Backend - Sustainability Mini-Games for Kids
Firebase Cloud Functions + Firestore Backend

Main entry point for the Flask API wrapped as Firebase Functions
"""

import os
import logging

from flask import Blueprint, Flask, current_app, jsonify, redirect, request
from flask_cors import CORS
from firebase_functions import https_fn, options
from firebase_admin import initialize_app, get_app, credentials, firestore

from config import get_settings
from services.auth_events import AuthStateRegistry
from services.auth_service import AuthService
from services.game_service import GameService, validate_score
from services.game_session import GameSessionRunner
from services.leaderboard_service import LeaderboardService
from services.profile_store import ProfileStore
from services.user_service import UserService
from utils.auth_middleware import get_bearer_token, require_auth, require_teacher
from utils.error_handler import ValidationError, handle_error, validate_request_data

logger = logging.getLogger(__name__)

bp = Blueprint('planet_heroes', __name__)


def init_firebase(settings):
    """
    Initialize the Firebase Admin SDK and return a Firestore client
    """
    try:
        get_app()
    except ValueError:
        # For local development, use service account key
        if settings.credentials_path and os.path.exists(settings.credentials_path):
            initialize_app(credentials.Certificate(settings.credentials_path))
        else:
            # Use default credentials in production
            options_ = {'projectId': settings.firebase_project_id} if settings.firebase_project_id else None
            initialize_app(options=options_)

    return firestore.client()


def create_app(db=None, settings=None, rng=None):
    settings = settings or get_settings()

    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    if db is None:
        db = init_firebase(settings)

    app = Flask(__name__)
    app.config['DEBUG'] = settings.debug
    CORS(app, origins=settings.allowed_origins)

    store = ProfileStore(db)
    auth_service = AuthService(store, sign_in_url=settings.sign_in_url, auth_events=AuthStateRegistry())

    app.extensions['planet_heroes'] = {
        'settings': settings,
        'store': store,
        'auth': auth_service,
        'users': UserService(store),
        'games': GameService(store, rng=rng),
        'runner': GameSessionRunner(auth_service),
        'leaderboard': LeaderboardService(store),
    }

    app.register_blueprint(bp)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Endpoint not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {str(error)}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


def _services():
    return current_app.extensions['planet_heroes']


def _score_from(data):
    validate_request_data(data, ['score'])
    return validate_score(data['score'])


# Health check endpoint
@bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'service': 'planet-heroes-backend',
        'version': '1.0.0'
    })

# ============= AUTH ENDPOINTS =============

@bp.route('/auth/sign-in', methods=['GET'])
def sign_in():
    """Redirect the browser to the hosted sign-in page"""
    try:
        role = request.args.get('role', 'student')
        return redirect(_services()['auth'].sign_in_url(role))
    except Exception as e:
        return handle_error(e)

@bp.route('/auth/session', methods=['POST'])
def create_session():
    """Finish sign-in: verify the token from the redirect and bind the profile"""
    try:
        data = request.get_json(silent=True) or {}
        token = get_bearer_token() or data.get('idToken', '')

        identity, created = _services()['auth'].handle_redirect_result(token)
        profile = _services()['users'].get_user_profile(identity.subject_id)

        return jsonify({
            'success': True,
            'created': created,
            'user_id': identity.subject_id,
            'email': identity.email,
            'name': identity.display_name,
            'profile': profile
        }), 201 if created else 200
    except Exception as e:
        return handle_error(e)

@bp.route('/auth/sign-out', methods=['POST'])
@require_auth
def sign_out(session):
    """Sign the user out; an unfinished game is discarded"""
    try:
        _services()['auth'].sign_out(session.user_id)
        return jsonify({'success': True})
    except Exception as e:
        return handle_error(e)

# ============= PROFILE ENDPOINTS =============

@bp.route('/profile', methods=['GET'])
@require_auth
def get_profile(session):
    """Get the caller's profile summary"""
    try:
        return jsonify(_services()['users'].get_user_profile(session.user_id))
    except Exception as e:
        return handle_error(e)

@bp.route('/badges', methods=['GET'])
@require_auth
def get_badges(session):
    """Get the caller's badge gallery"""
    try:
        return jsonify(_services()['users'].get_badge_gallery(session.user_id))
    except Exception as e:
        return handle_error(e)

# ============= GAME ENDPOINTS =============

@bp.route('/games', methods=['GET'])
@require_auth
def get_games(session):
    """Game picker plus the caller's running game, if any"""
    try:
        active = _services()['runner'].active(session.user_id)
        return jsonify({
            'games': _services()['games'].list_games(),
            'active': active.to_dict() if active else None
        })
    except Exception as e:
        return handle_error(e)

@bp.route('/games/<game_type>/start', methods=['POST'])
@require_auth
def start_game(game_type, session):
    """Start a game; only one can run at a time"""
    try:
        run = _services()['runner'].start(session.user_id, game_type)
        return jsonify(run.to_dict()), 201
    except Exception as e:
        return handle_error(e)

@bp.route('/games/finish', methods=['POST'])
@require_auth
def finish_game(session):
    """End the running game with its final score and record it"""
    try:
        score = _score_from(request.get_json(silent=True))
        event = _services()['runner'].finish(session.user_id, score)
        outcome = _services()['games'].complete_game(event.user_id, event.game_type, event.score)
        return jsonify(outcome.to_dict())
    except Exception as e:
        return handle_error(e)

@bp.route('/games/abandon', methods=['POST'])
@require_auth
def abandon_game(session):
    """Close the running game without recording a score"""
    try:
        run = _services()['runner'].abandon(session.user_id)
        return jsonify({'abandoned': run.to_dict() if run else None})
    except Exception as e:
        return handle_error(e)

@bp.route('/games/complete', methods=['POST'])
@require_auth
def complete_game(session):
    """Record a finished game reported directly by the client"""
    try:
        data = request.get_json(silent=True)
        validate_request_data(data, ['gameType', 'score'], {'gameType': str})
        score = _score_from(data)

        outcome = _services()['games'].complete_game(session.user_id, data['gameType'], score)
        return jsonify(outcome.to_dict())
    except Exception as e:
        return handle_error(e)

# ============= LEADERBOARD ENDPOINTS =============

@bp.route('/leaderboard', methods=['GET'])
@require_auth
def get_leaderboard(session):
    """Get the student leaderboard"""
    try:
        default_limit = _services()['settings'].leaderboard_limit
        try:
            limit = int(request.args.get('limit', default_limit))
        except ValueError:
            raise ValidationError("Limit must be an integer", field='limit')

        leaderboard = _services()['leaderboard'].get_leaderboard(
            limit=limit,
            current_user_id=session.user_id
        )
        return jsonify(leaderboard)
    except Exception as e:
        return handle_error(e)

# ============= TEACHER ENDPOINTS =============

@bp.route('/teacher/analytics', methods=['GET'])
@require_teacher
def get_teacher_analytics(session):
    """Teacher gets class progress overview"""
    try:
        return jsonify(_services()['users'].get_teacher_analytics())
    except Exception as e:
        return handle_error(e)


_app = None


def _get_app():
    global _app
    if _app is None:
        _app = create_app()
    return _app


# Firebase Cloud Function wrapper
@https_fn.on_request(
    cors=options.CorsOptions(
        cors_origins=["*"],
        cors_methods=["GET", "POST", "OPTIONS"]
    )
)
def api(req):
    """Main Cloud Function entry point"""
    app = _get_app()
    with app.request_context(req.environ):
        return app.full_dispatch_request()


# For local development
if __name__ == '__main__':
    _get_app().run(debug=get_settings().debug, host='0.0.0.0', port=8080)
