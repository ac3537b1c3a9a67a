# Overview: Client-side query cache with staleness, prefix invalidation and optimistic mutations.

"""
Query cache.

Keys are tuples such as ("batches", "active", "morning") or
("inventory", "shift", "night"); invalidate(prefix) drops every key that
starts with the prefix. Entries older than `max_age` are refetched by
get_or_fetch.
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable

from .api import HomeBakeClient


logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 15.0

_temp_ids = itertools.count(1)


def _as_prefix(prefix) -> tuple:
    if isinstance(prefix, tuple):
        return prefix
    return (prefix,)


def batches_key(shift: str | None = None, status: str = "active") -> tuple:
    return ("batches", status, shift)


def inventory_key(shift: str | None = None) -> tuple:
    if shift is None:
        return ("inventory", "current")
    return ("inventory", "shift", shift)


def sales_key(shift: str | None = None) -> tuple:
    return ("sales", "current", shift)


@dataclass
class CacheEntry:
    value: Any
    fetched_at: float


class QueryCache:
    def __init__(self, max_age: float = DEFAULT_MAX_AGE_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.max_age = max_age
        self._clock = clock
        self._entries: dict[tuple, CacheEntry] = {}
        self._lock = threading.RLock()

    def get(self, key: tuple, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            return entry.value if entry is not None else default

    def set(self, key: tuple, value: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value, self._clock())

    def is_stale(self, key: tuple, max_age: float | None = None) -> bool:
        max_age = self.max_age if max_age is None else max_age
        with self._lock:
            entry = self._entries.get(key)
            return entry is None or (self._clock() - entry.fetched_at) >= max_age

    def get_or_fetch(self, key: tuple, fetch: Callable[[], Any], max_age: float | None = None) -> Any:
        if not self.is_stale(key, max_age):
            return self.get(key)
        value = fetch()
        self.set(key, value)
        return value

    def invalidate(self, prefix: Hashable | tuple = ()) -> int:
        """Drop every entry whose key starts with `prefix`. Returns the number dropped."""
        prefix = _as_prefix(prefix)
        with self._lock:
            doomed = [key for key in self._entries if key[:len(prefix)] == prefix]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug("Invalidated %s cache entries under %s", len(doomed), prefix)
        return len(doomed)

    def keys(self) -> list[tuple]:
        with self._lock:
            return list(self._entries)

    def snapshot(self, prefix: Hashable | tuple = ()) -> dict[tuple, CacheEntry]:
        prefix = _as_prefix(prefix)
        with self._lock:
            return {
                key: CacheEntry(copy.deepcopy(entry.value), entry.fetched_at)
                for key, entry in self._entries.items()
                if key[:len(prefix)] == prefix
            }

    def restore(self, snapshot: dict[tuple, CacheEntry], prefix: Hashable | tuple = ()) -> None:
        """Put back the entries captured by snapshot(prefix); keys added since are dropped."""
        prefix = _as_prefix(prefix)
        with self._lock:
            for key in [k for k in self._entries if k[:len(prefix)] == prefix]:
                del self._entries[key]
            self._entries.update(snapshot)


def create_batch_optimistic(client: HomeBakeClient, cache: QueryCache, payload: dict) -> dict:
    """
    Create a batch, showing it in the cached active-batch list immediately.

    A placeholder row (temporary id, status "pending") is put at the top of
    the list, then replaced by the server's batch. On failure the cached
    batch lists are restored and the error is re-raised. Inventory entries
    are invalidated either way.
    """
    shift = payload.get("shift")
    key = batches_key(shift)
    previous = cache.snapshot(("batches",))

    placeholder = dict(payload)
    placeholder.update({
        "id": f"temp-{next(_temp_ids)}",
        "status": "pending",
        "batch_number": None,
        "is_optimistic": True,
    })
    cache.set(key, [placeholder] + list(cache.get(key) or []))

    try:
        batch = client.create_batch(payload)
    except Exception:
        logger.warning("Batch creation failed; rolling back optimistic update")
        cache.restore(previous, ("batches",))
        raise
    else:
        rows = [row for row in (cache.get(key) or []) if row.get("id") != placeholder["id"]]
        cache.set(key, [batch] + rows)
        return batch
    finally:
        cache.invalidate(("inventory",))


def record_sale_optimistic(client: HomeBakeClient, cache: QueryCache, payload: dict) -> dict:
    """
    Record a sale, decrementing cached availability immediately.

    Cached inventory items for the bread type lose `quantity` (never below
    zero). On failure the sales and inventory entries are restored.
    """
    shift = payload.get("shift")
    sale_key = sales_key(shift)
    previous_sales = cache.snapshot(("sales",))
    previous_inventory = cache.snapshot(("inventory",))

    placeholder = dict(payload)
    placeholder.update({"id": f"temp-sale-{next(_temp_ids)}", "is_optimistic": True})
    cache.set(sale_key, [placeholder] + list(cache.get(sale_key) or []))

    for key in cache.keys():
        if key[:1] != ("inventory",):
            continue
        view = copy.deepcopy(cache.get(key))
        for item in (view or {}).get("items", []):
            if item.get("bread_type_id") == payload.get("bread_type_id"):
                item["available"] = max(0, item["available"] - int(payload.get("quantity") or 0))
        cache.set(key, view)

    try:
        sale = client.record_sale(payload)
    except Exception:
        logger.warning("Sale recording failed; rolling back optimistic update")
        cache.restore(previous_sales, ("sales",))
        cache.restore(previous_inventory, ("inventory",))
        raise

    rows = [row for row in (cache.get(sale_key) or []) if row.get("id") != placeholder["id"]]
    cache.set(sale_key, [sale] + rows)
    cache.invalidate(("inventory",))
    return sale
