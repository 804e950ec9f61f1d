import logging
import threading

from django.conf import settings
from django.db import close_old_connections

logger = logging.getLogger(__name__)


class DraftAutosaver:
    """
    Debounced draft saving: at most one pending save per vehicle.

    Scheduling again for the same vehicle replaces the pending save, so a
    burst of edits produces a single write once the form goes quiet.
    ``timer_factory`` follows the ``threading.Timer`` signature.
    """

    def __init__(self, draft_store, delay=None, timer_factory=threading.Timer):
        self.draft_store = draft_store
        self.delay = settings.TEST_DRIVE_DRAFT_AUTOSAVE_SECONDS if delay is None else delay
        self.timer_factory = timer_factory
        self._pending = {}
        self._lock = threading.Lock()

    def schedule(self, vehicle_id, payload):
        snapshot = dict(payload)
        with self._lock:
            previous = self._pending.pop(vehicle_id, None)
            if previous is not None:
                previous[0].cancel()
            timer = self.timer_factory(self.delay, self._fire, args=(vehicle_id,))
            timer.daemon = True
            self._pending[vehicle_id] = (timer, snapshot)
        timer.start()

    def has_pending(self, vehicle_id):
        with self._lock:
            return vehicle_id in self._pending

    def _take(self, vehicle_id):
        with self._lock:
            return self._pending.pop(vehicle_id, None)

    def _fire(self, vehicle_id):
        entry = self._take(vehicle_id)
        if entry is None:
            return
        try:
            self.draft_store.save_draft(vehicle_id, entry[1])
        finally:
            close_old_connections()

    def flush(self, vehicle_id):
        """Run the pending save now instead of waiting for the timer."""
        entry = self._take(vehicle_id)
        if entry is None:
            return False
        entry[0].cancel()
        return self.draft_store.save_draft(vehicle_id, entry[1])

    def cancel(self, vehicle_id):
        entry = self._take(vehicle_id)
        if entry is not None:
            entry[0].cancel()
            logger.debug("Cancelled pending draft save for vehicle %s", vehicle_id)

    def cancel_all(self):
        with self._lock:
            pending, self._pending = self._pending, {}
        for timer, _ in pending.values():
            timer.cancel()
