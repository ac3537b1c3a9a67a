# Overview: Polling subscriber for the activity change feed.

"""
Change feed.

Polls /api/activities/feed with a since_id cursor, hands new activities
to subscribers registered for their type (or "*") and invalidates the
cache prefixes mapped to that type. Errors back off exponentially up to
max_backoff; the first successful poll resets the interval.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Callable

from .api import HomeBakeClient
from .query_cache import QueryCache


logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 15.0
MAX_BACKOFF_SECONDS = 60.0

# Cache prefixes touched by each activity type
DEFAULT_INVALIDATIONS = {
    "sale": [("sales",), ("inventory",), ("reports",)],
    "batch": [("batches",), ("inventory",)],
    "end_shift": [("sales",), ("inventory",), ("reports",), ("shift_reports",)],
    "report": [("reports",)],
    "created": [("users",)],
    "login": [("staff_online",)],
}

WILDCARD = "*"


class ChangeFeed:
    def __init__(
        self,
        client: HomeBakeClient,
        cache: QueryCache | None = None,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        max_backoff: float = MAX_BACKOFF_SECONDS,
        since_id: int = 0,
        invalidations: dict[str, list[tuple]] | None = None,
    ):
        self.client = client
        self.cache = cache
        self.interval = interval
        self.max_backoff = max_backoff
        self.cursor = since_id
        self.invalidations = DEFAULT_INVALIDATIONS if invalidations is None else invalidations
        self.failures = 0
        self._subscribers: dict[str, list[Callable[[dict], None]]] = defaultdict(list)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def subscribe(self, activity_type: str, callback: Callable[[dict], None]) -> Callable[[], None]:
        """Register `callback` for an activity type ("*" for all). Returns an unsubscribe function."""
        self._subscribers[activity_type].append(callback)

        def unsubscribe():
            if callback in self._subscribers[activity_type]:
                self._subscribers[activity_type].remove(callback)

        return unsubscribe

    def next_delay(self) -> float:
        if self.failures == 0:
            return self.interval
        return min(self.max_backoff, self.interval * (2 ** self.failures))

    def _dispatch(self, activity: dict) -> None:
        activity_type = activity.get("activity_type")
        for callback in list(self._subscribers.get(activity_type, [])) + list(self._subscribers.get(WILDCARD, [])):
            try:
                callback(activity)
            except Exception:
                logger.exception("Change feed subscriber failed for activity %s", activity.get("id"))

        if self.cache is not None:
            for prefix in self.invalidations.get(activity_type, []):
                self.cache.invalidate(prefix)

    def poll_once(self) -> list[dict]:
        """Fetch and dispatch everything after the cursor. Raises on API errors."""
        data = self.client.activity_feed(since_id=self.cursor)
        items = data.get("items", [])
        for activity in items:
            self._dispatch(activity)
        self.cursor = data.get("next_cursor", self.cursor)
        return items

    def tick(self) -> float:
        """One poll with error accounting. Returns the delay before the next poll."""
        try:
            self.poll_once()
        except Exception as exc:
            self.failures += 1
            delay = self.next_delay()
            logger.warning("Change feed poll failed (%s); next attempt in %.1fs", exc, delay)
            return delay
        self.failures = 0
        return self.interval

    def run(self, stop_event: threading.Event | None = None) -> None:
        stop_event = stop_event or self._stop
        while not stop_event.is_set():
            delay = self.tick()
            stop_event.wait(delay)

    def start(self) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="homebake-change-feed", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
