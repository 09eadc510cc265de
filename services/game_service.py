"""
Game Service for Planet Heroes
Applies the result of a finished mini-game to the player's profile: points, badge and an eco fact
"""

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
import logging

from models import (
    GAMES, USERS_COLLECTION, badge_for, level_for_points, profile_with_defaults, random_fact,
)
from utils.error_handler import DatabaseError, ValidationError

logger = logging.getLogger(__name__)


def validate_score(score):
    if isinstance(score, bool) or not isinstance(score, int) or score < 0:
        raise ValidationError("Score must be a non-negative integer", field='score')
    return score


@dataclass
class CompletionOutcome:
    game_type: str
    score: int
    saved: bool = False
    points_awarded: int = 0
    badge_earned: str = None
    badge_awarded: bool = False
    fact: dict = None
    profile: dict = None

    def to_dict(self):
        return {
            'gameType': self.game_type,
            'score': self.score,
            'saved': self.saved,
            'pointsAwarded': self.points_awarded,
            'badgeEarned': self.badge_earned,
            'badgeAwarded': self.badge_awarded,
            'fact': self.fact,
            'profile': self.profile,
        }


class GameService:
    def __init__(self, store, rng=None):
        self.store = store
        self.rng = rng

    def list_games(self):
        return [
            {'id': game.value, 'title': info.title, 'description': info.description, 'icon': info.icon}
            for game, info in GAMES.items()
        ]

    def complete_game(self, user_id, game_type, score):
        """
        Record a finished game for user_id.

        The badge check uses the profile as read before the points increment.
        Two completions racing for the same badge may both see it missing and
        both append it; the append is a Firestore ArrayUnion, so the badge still
        ends up in the set once.

        Store failures are logged and reported through the outcome instead of
        raised. Nothing is rolled back or retried.
        """
        if not user_id:
            raise ValidationError("User id required", field='user_id')
        validate_score(score)

        outcome = CompletionOutcome(game_type=game_type, score=score)

        try:
            pre_snapshot = self.store.get_document(USERS_COLLECTION, user_id) or {}

            self.store.increment_field(
                USERS_COLLECTION, user_id, 'totalPoints', score,
                extra_fields={'lastActive': datetime.now(timezone.utc)}
            )
            outcome.points_awarded = score

            badge = badge_for(game_type, score)
            if badge is not None:
                outcome.badge_earned = badge.value
                if badge.value not in (pre_snapshot.get('badges') or []):
                    self.store.append_to_set(USERS_COLLECTION, user_id, 'badges', badge.value)
                    outcome.badge_awarded = True
                    logger.info(f"Awarded badge {badge.value} to user {user_id}")
        except DatabaseError as e:
            logger.error(f"Error recording {game_type} completion for user {user_id}: {e.message}")
            return outcome

        outcome.saved = True
        outcome.fact = asdict(random_fact(self.rng))

        try:
            outcome.profile = self._refresh_profile(user_id)
        except DatabaseError as e:
            logger.error(f"Error refreshing profile for user {user_id}: {e.message}")

        logger.info(f"Recorded {game_type} completion for user {user_id}: +{score} points")
        return outcome

    def _refresh_profile(self, user_id):
        data = self.store.get_document(USERS_COLLECTION, user_id)
        profile = profile_with_defaults(user_id, data)

        level = level_for_points(profile['totalPoints'])
        if data is not None and level > profile['level']:
            self.store.set_document(USERS_COLLECTION, user_id, {'level': level}, merge=True)
            profile['level'] = level
            logger.info(f"User {user_id} reached level {level}")

        return profile
