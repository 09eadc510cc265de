"""
Per-request identity and session context
"""

from dataclasses import dataclass

from models import UserRole


@dataclass(frozen=True)
class Identity:
    subject_id: str
    email: str = ''
    display_name: str = ''

    @classmethod
    def from_token(cls, decoded_token):
        return cls(
            subject_id=decoded_token['uid'],
            email=decoded_token.get('email', '') or '',
            display_name=decoded_token.get('name', '') or '',
        )


@dataclass(frozen=True)
class Session:
    """
    Who is making the request. Handed explicitly to every route and service
    call that needs the current user.
    """
    identity: Identity
    role: str = UserRole.STUDENT.value

    @property
    def user_id(self):
        return self.identity.subject_id

    @property
    def is_teacher(self):
        return self.role == UserRole.TEACHER.value
