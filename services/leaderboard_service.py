"""
Leaderboard Service for Planet Heroes
Ranks students by total points
"""

import logging

from models import USERS_COLLECTION, UserRole

logger = logging.getLogger(__name__)

class LeaderboardService:
    def __init__(self, store):
        self.store = store

    def get_leaderboard(self, limit=50, current_user_id=None):
        """
        Get the student leaderboard, highest points first. Ties share a rank.
        """
        if limit < 1:
            raise ValueError("Limit must be at least 1")

        entries = []
        for user_id, data in self.store.stream_collection(USERS_COLLECTION, 'role', UserRole.STUDENT.value):
            entries.append({
                'user_id': user_id,
                'name': data.get('name') or 'Planet Hero',
                'totalPoints': data.get('totalPoints') or 0,
                'level': data.get('level') or 1,
                'badges': len(set(data.get('badges') or [])),
            })

        entries.sort(key=lambda e: (-e['totalPoints'], e['name']))

        current_user_rank = None
        current_user_entry = None
        previous_points = None
        rank = 0
        for position, entry in enumerate(entries, start=1):
            if entry['totalPoints'] != previous_points:
                rank = position
                previous_points = entry['totalPoints']
            entry['rank'] = rank

            if entry['user_id'] == current_user_id:
                current_user_rank = rank
                current_user_entry = entry

        return {
            'entries': entries[:limit],
            'total_participants': len(entries),
            'current_user_rank': current_user_rank,
            'current_user': current_user_entry,
        }
