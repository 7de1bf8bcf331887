"""
"Data changed, re-fetch" broadcast for admin screens open on several devices.

There is no payload and no delivery guarantee: every successful write bumps
a revision number, listeners are called in-process, and remote clients poll
``/api?action=get_revision`` and re-fetch when the number moves.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class DataChangeNotifier:
    def __init__(self):
        self._lock = threading.Lock()
        self._revision = 0
        self._listeners = []

    @property
    def revision(self):
        return self._revision

    def subscribe(self, callback):
        """Register ``callback(revision)``; returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def notify(self, reason=''):
        with self._lock:
            self._revision += 1
            revision = self._revision
            listeners = list(self._listeners)

        logger.debug(f"Data changed (revision {revision}) {reason}".rstrip())
        for callback in listeners:
            try:
                callback(revision)
            except Exception as e:
                # Fire and forget: a broken listener never fails the write
                logger.warning(f"Data change listener failed: {e}")
        return revision


notifier = DataChangeNotifier()
