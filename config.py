"""
Configuration for Planet Heroes Backend
Settings are read from environment variables, with a local .env file for development
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value, default=False):
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Settings:
    def __init__(self, environ=None):
        env = os.environ if environ is None else environ

        self.environment = env.get('ENVIRONMENT', 'production')
        self.debug = _as_bool(env.get('DEBUG'))
        self.log_level = env.get('LOG_LEVEL', 'INFO').upper()

        origins = env.get('ALLOWED_ORIGINS', '*')
        self.allowed_origins = [o.strip() for o in origins.split(',') if o.strip()] or ['*']

        self.credentials_path = env.get('GOOGLE_APPLICATION_CREDENTIALS', 'serviceAccountKey.json')
        self.firebase_project_id = env.get('FIREBASE_PROJECT_ID', '')
        self.sign_in_url = env.get('SIGN_IN_URL', '/login')

        try:
            self.leaderboard_limit = int(env.get('LEADERBOARD_LIMIT', 50))
        except ValueError:
            self.leaderboard_limit = 50


def get_settings():
    return Settings()
