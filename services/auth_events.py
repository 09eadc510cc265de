"""
Auth state notifications for Planet Heroes
One producer publishes subject id transitions (or None on sign-out); any number of consumers subscribe
"""

import logging
import threading

logger = logging.getLogger(__name__)

_UNSET = object()


class AuthStateChannel:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers = {}
        self._next_token = 0
        self._current = _UNSET

    @property
    def current(self):
        return None if self._current is _UNSET else self._current

    def subscribe(self, callback):
        """
        Register callback(subject_id_or_None). It is called right away with the
        current state if one has been published. Returns an unsubscribe function.
        """
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = callback
            current = self._current

        if current is not _UNSET:
            self._deliver(callback, current)

        def unsubscribe():
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    def publish(self, subject_id):
        """
        Announce a transition; repeating the current state notifies nobody
        """
        with self._lock:
            if self._current is not _UNSET and self._current == subject_id:
                return
            self._current = subject_id
            callbacks = list(self._subscribers.values())

        for callback in callbacks:
            self._deliver(callback, subject_id)

    def subscriber_count(self):
        with self._lock:
            return len(self._subscribers)

    def _deliver(self, callback, subject_id):
        try:
            callback(subject_id)
        except Exception as e:
            logger.error(f"Auth state subscriber failed for {subject_id}: {str(e)}")


class AuthStateRegistry:
    """
    One AuthStateChannel per signed-in subject. The channel carries the subject
    id while signed in and None after sign-out. A signed-out channel with no
    subscribers left is dropped.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._channels = {}

    def channel(self, subject_id):
        with self._lock:
            channel = self._channels.get(subject_id)
            if channel is None:
                channel = self._channels[subject_id] = AuthStateChannel()
            return channel

    def subscribe(self, subject_id, callback):
        unsubscribe = self.channel(subject_id).subscribe(callback)

        def release():
            unsubscribe()
            self._discard_if_idle(subject_id)

        return release

    def signed_in(self, subject_id):
        self.channel(subject_id).publish(subject_id)

    def signed_out(self, subject_id):
        self.channel(subject_id).publish(None)
        self._discard_if_idle(subject_id)

    def is_signed_in(self, subject_id):
        with self._lock:
            channel = self._channels.get(subject_id)
        return channel is not None and channel.current == subject_id

    def channel_count(self):
        with self._lock:
            return len(self._channels)

    def _discard_if_idle(self, subject_id):
        with self._lock:
            channel = self._channels.get(subject_id)
            if channel is None or channel.current is not None:
                return
            if channel.subscriber_count() == 0:
                del self._channels[subject_id]
