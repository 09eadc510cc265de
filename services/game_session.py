"""
Game Session Runner for Planet Heroes
Tracks the single active mini-game of each player and turns its end into one completion event
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import threading
import uuid

from models import parse_game_type
from utils.error_handler import (
    AuthenticationError, GameInProgressError, NotFoundError, ValidationError
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionEvent:
    user_id: str
    game_type: str
    score: int


@dataclass
class GameRun:
    user_id: str
    game_type: str
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            'run_id': self.run_id,
            'gameType': self.game_type,
            'started_at': self.started_at.isoformat(),
        }


class GameSessionRunner:
    def __init__(self, auth_service=None):
        self.auth_service = auth_service
        self._lock = threading.Lock()
        self._runs = {}
        self._unsubscribers = {}

    def start(self, user_id, game_type):
        game = parse_game_type(game_type)
        if game is None:
            raise ValidationError(f"Unknown game type: {game_type}", field='gameType')

        with self._lock:
            active = self._runs.get(user_id)
            if active is not None:
                raise GameInProgressError(f"Game {active.game_type} is already in progress")
            run = GameRun(user_id=user_id, game_type=game.value)
            self._runs[user_id] = run

        # Signing out tears the run down like closing the game would
        if self.auth_service is not None:
            unsubscribe = self.auth_service.on_auth_change(user_id, self._auth_listener(run))
            with self._lock:
                if self._runs.get(user_id) is run:
                    self._unsubscribers[run.run_id] = unsubscribe
                    unsubscribe = None
            if unsubscribe is not None:
                unsubscribe()
                raise AuthenticationError("Signed out")

        logger.info(f"User {user_id} started {run.game_type} ({run.run_id})")
        return run

    def active(self, user_id):
        with self._lock:
            return self._runs.get(user_id)

    def finish(self, user_id, score):
        """
        End the active run with its final score. The returned event is the only
        one this run will ever produce.
        """
        with self._lock:
            run = self._runs.get(user_id)
            if run is None:
                raise NotFoundError("No game in progress")
            self._teardown(run)

        logger.info(f"User {user_id} finished {run.game_type} with score {score}")
        return CompletionEvent(user_id=user_id, game_type=run.game_type, score=score)

    def abandon(self, user_id):
        """
        Drop the active run without committing a score. Returns the dropped run, if any.
        """
        with self._lock:
            run = self._runs.get(user_id)
            if run is None:
                return None
            self._teardown(run)

        logger.info(f"User {user_id} abandoned {run.game_type} ({run.run_id})")
        return run

    def _teardown(self, run):
        # caller holds the lock
        del self._runs[run.user_id]
        unsubscribe = self._unsubscribers.pop(run.run_id, None)
        if unsubscribe is not None:
            unsubscribe()

    def _auth_listener(self, run):
        def listener(subject_id):
            if subject_id is not None:
                return
            with self._lock:
                if self._runs.get(run.user_id) is not run:
                    return
                self._teardown(run)
            logger.info(f"Discarded {run.game_type} for signed-out user {run.user_id}")
        return listener
