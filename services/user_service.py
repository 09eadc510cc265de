"""
User Service for Planet Heroes
Profile summary, badge gallery and teacher analytics, all derived from profile reads
"""

from datetime import datetime, timedelta, timezone
import logging

from models import (
    BADGES, USERS_COLLECTION, UserRole, badge_display, profile_with_defaults,
)

logger = logging.getLogger(__name__)

ACTIVE_WINDOW_DAYS = 7
TOP_STUDENTS = 5

class UserService:
    def __init__(self, store):
        self.store = store

    def get_user_profile(self, user_id):
        """
        Get user profile; a user without a document yet gets the defaults
        """
        data = self.store.get_document(USERS_COLLECTION, user_id)
        if data is None:
            logger.info(f"No profile yet for user {user_id}, using defaults")

        profile = profile_with_defaults(user_id, data)
        profile['badgeCount'] = len(set(profile['badges']))
        return profile

    def get_badge_gallery(self, user_id):
        """
        Earned badges in the order they were earned, plus locked slots for the rest
        """
        profile = self.get_user_profile(user_id)

        earned = []
        seen = set()
        for badge in profile['badges']:
            if badge in seen:
                continue
            seen.add(badge)
            earned.append(badge_display(badge))

        locked = max(0, len(BADGES) - len(earned))
        return {
            'earned': earned,
            'locked_slots': locked,
            'earned_count': len(earned),
            'total_badges': len(BADGES),
        }

    def get_teacher_analytics(self, now=None):
        """
        Aggregate student progress for the teacher dashboard
        """
        now = now or datetime.now(timezone.utc)
        active_since = now - timedelta(days=ACTIVE_WINDOW_DAYS)

        badge_distribution = {kind.value: 0 for kind in BADGES}
        students = []
        total_points = 0
        active_students = 0

        for user_id, data in self.store.stream_collection(USERS_COLLECTION, 'role', UserRole.STUDENT.value):
            profile = profile_with_defaults(user_id, data)
            badges = set(profile['badges'])
            total_points += profile['totalPoints']

            for badge in badges:
                if badge in badge_distribution:
                    badge_distribution[badge] += 1

            last_active = profile['lastActive']
            if isinstance(last_active, datetime):
                if last_active.tzinfo is None:
                    last_active = last_active.replace(tzinfo=timezone.utc)
                if last_active >= active_since:
                    active_students += 1

            students.append({
                'id': user_id,
                'name': profile['name'] or 'Planet Hero',
                'totalPoints': profile['totalPoints'],
                'level': profile['level'],
                'badges': len(badges),
            })

        students.sort(key=lambda s: s['totalPoints'], reverse=True)
        count = len(students)

        return {
            'total_students': count,
            'total_points': total_points,
            'average_points': total_points / count if count else 0,
            'active_students': active_students,
            'active_window_days': ACTIVE_WINDOW_DAYS,
            'badge_distribution': badge_distribution,
            'top_students': students[:TOP_STUDENTS],
        }
