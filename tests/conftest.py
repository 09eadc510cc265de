"""
Shared fixtures: an in-memory Firestore stand-in and a Flask test client
"""

import copy
import random
import threading
from datetime import datetime, timezone

import pytest
from google.api_core.exceptions import NotFound
from google.cloud.firestore import ArrayUnion, Increment

from config import Settings
from services.profile_store import ProfileStore


def _apply_fields(doc, fields):
    for key, value in fields.items():
        if isinstance(value, Increment):
            doc[key] = doc.get(key, 0) + value.value
        elif isinstance(value, ArrayUnion):
            current = list(doc.get(key) or [])
            for item in value.values:
                if item not in current:
                    current.append(item)
            doc[key] = current
        else:
            doc[key] = copy.deepcopy(value)
    return doc


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self.exists = data is not None
        self._data = copy.deepcopy(data)

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocumentRef:
    def __init__(self, db, collection, doc_id):
        self.db = db
        self.collection = collection
        self.id = doc_id

    def get(self):
        if self.db.before_read is not None:
            self.db.before_read(self.collection, self.id)
        with self.db.lock:
            return FakeSnapshot(self.id, self.db.data.setdefault(self.collection, {}).get(self.id))

    def set(self, fields, merge=False):
        with self.db.lock:
            docs = self.db.data.setdefault(self.collection, {})
            if merge and self.id in docs:
                _apply_fields(docs[self.id], fields)
            else:
                docs[self.id] = _apply_fields({}, fields)

    def update(self, fields):
        with self.db.lock:
            docs = self.db.data.setdefault(self.collection, {})
            if self.id not in docs:
                raise NotFound(f"No document to update: {self.collection}/{self.id}")
            _apply_fields(docs[self.id], fields)


class FakeQuery:
    def __init__(self, db, collection, filters=()):
        self.db = db
        self.collection = collection
        self.filters = tuple(filters)

    def where(self, field, op, value):
        assert op == '==', "only equality filters are supported"
        return FakeQuery(self.db, self.collection, self.filters + ((field, value),))

    def stream(self):
        with self.db.lock:
            docs = copy.deepcopy(self.db.data.get(self.collection, {}))
        for doc_id, data in docs.items():
            if all(data.get(field) == value for field, value in self.filters):
                yield FakeSnapshot(doc_id, data)


class FakeCollection(FakeQuery):
    def document(self, doc_id):
        return FakeDocumentRef(self.db, self.collection, doc_id)


class FakeFirestore:
    """
    Just enough of the Firestore client for the services: documents, merge
    sets, Increment/ArrayUnion transforms and equality queries.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self.data = {}
        self.before_read = None

    def collection(self, name):
        return FakeCollection(self, name)

    def seed(self, collection, doc_id, **fields):
        self.data.setdefault(collection, {})[doc_id] = fields
        return fields

    def doc(self, collection, doc_id):
        return copy.deepcopy(self.data.get(collection, {}).get(doc_id))


@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def store(fake_db):
    return ProfileStore(fake_db)


@pytest.fixture
def now():
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def seed_student(fake_db, now):
    def seed(user_id='student-1', **overrides):
        fields = {
            'email': f'{user_id}@example.com',
            'name': 'Test Student',
            'role': 'student',
            'totalPoints': 0,
            'badges': [],
            'level': 1,
            'createdAt': now,
            'lastActive': now,
        }
        fields.update(overrides)
        return fake_db.seed('users', user_id, **fields)
    return seed


@pytest.fixture
def settings():
    return Settings({
        'ENVIRONMENT': 'development',
        'SIGN_IN_URL': 'https://heroes.example/login',
        'LEADERBOARD_LIMIT': '10',
    })


TOKENS = {
    'student-token': {'uid': 'student-1', 'email': 'student-1@example.com', 'name': 'Sam Student'},
    'other-token': {'uid': 'student-2', 'email': 'student-2@example.com', 'name': 'Ola Other'},
    'teacher-token': {'uid': 'teacher-1', 'email': 'teacher@example.com', 'name': 'Tess Teacher'},
}


@pytest.fixture
def revoked_uids():
    return set()


@pytest.fixture
def verify_token(mocker, revoked_uids):
    from firebase_admin import auth

    def verify(token, *args, **kwargs):
        if token not in TOKENS:
            raise auth.InvalidIdTokenError('Invalid token')
        claims = dict(TOKENS[token])
        if kwargs.get('check_revoked') and claims['uid'] in revoked_uids:
            raise auth.RevokedIdTokenError('Token revoked')
        return claims

    return mocker.patch('firebase_admin.auth.verify_id_token', side_effect=verify)


@pytest.fixture
def app(fake_db, settings, verify_token, revoked_uids, mocker):
    mocker.patch('firebase_admin.auth.revoke_refresh_tokens', side_effect=revoked_uids.add)
    from main import create_app

    flask_app = create_app(db=fake_db, settings=settings, rng=random.Random(7))
    flask_app.config['TESTING'] = True
    return flask_app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client