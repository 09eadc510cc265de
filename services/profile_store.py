"""
Profile Store for Planet Heroes
Thin Firestore adapter exposing the document operations the services rely on
"""

import logging

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from utils.error_handler import DatabaseError

logger = logging.getLogger(__name__)

class ProfileStore:
    def __init__(self, db):
        self.db = db

    def _ref(self, collection, doc_id):
        return self.db.collection(collection).document(doc_id)

    def get_document(self, collection, doc_id):
        """
        Read one document; returns its fields or None when it does not exist
        """
        try:
            snapshot = self._ref(collection, doc_id).get()
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Error reading {collection}/{doc_id}: {str(e)}")
            raise DatabaseError(f"Failed to read {collection}/{doc_id}: {str(e)}") from e

        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def set_document(self, collection, doc_id, fields, merge=False):
        try:
            self._ref(collection, doc_id).set(fields, merge=merge)
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Error writing {collection}/{doc_id}: {str(e)}")
            raise DatabaseError(f"Failed to write {collection}/{doc_id}: {str(e)}") from e

    def increment_field(self, collection, doc_id, field, delta, extra_fields=None):
        """
        Atomically add delta to a numeric field. The document must already exist.
        extra_fields are written in the same update.
        """
        update = dict(extra_fields or {})
        update[field] = firestore.Increment(delta)
        try:
            self._ref(collection, doc_id).update(update)
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Error incrementing {field} on {collection}/{doc_id}: {str(e)}")
            raise DatabaseError(f"Failed to increment {field}: {str(e)}") from e

    def append_to_set(self, collection, doc_id, field, value):
        """
        Atomically add value to an array field with set-union semantics
        """
        try:
            self._ref(collection, doc_id).update({field: firestore.ArrayUnion([value])})
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Error appending to {field} on {collection}/{doc_id}: {str(e)}")
            raise DatabaseError(f"Failed to append to {field}: {str(e)}") from e

    def stream_collection(self, collection, field=None, value=None):
        """
        Yield (doc_id, fields) for every document, optionally filtered on field == value
        """
        query = self.db.collection(collection)
        if field is not None:
            query = query.where(field, '==', value)
        try:
            for doc in query.stream():
                yield doc.id, doc.to_dict() or {}
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Error streaming {collection}: {str(e)}")
            raise DatabaseError(f"Failed to read {collection}: {str(e)}") from e
