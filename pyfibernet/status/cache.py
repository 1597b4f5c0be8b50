# pyFiberNet Module - Status Cache
# -*- coding: utf-8 -*-
"""
 TTL-bounded, single-flight cache of ServiceStatus values

 All mutation of the entry map happens under one lock. A refresh is
 represented by a _Flight; the first caller to find a key stale becomes its
 leader and every concurrent caller for the same key waits on the same
 flight instead of fetching again.

 Usage
    value, flight, leader = cache.acquire(key)
    if value is not None:          # fresh hit
        return value
    if not leader:                 # someone else is refreshing
        return flight.wait(timeout)
    try:
        new_value = fetch()
    finally:
        cache.complete(key, flight, new_value)
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from pyfibernet.status.models import ServiceStatus

log = logging.getLogger(__name__)


class _Flight:
    def __init__(self):
        self.done = threading.Event()
        self.value: Optional[ServiceStatus] = None

    def wait(self, timeout: Optional[float] = None) -> Optional[ServiceStatus]:
        if not self.done.wait(timeout):
            return None
        return self.value


@dataclass
class StatusCacheEntry:
    value: Optional[ServiceStatus] = None
    expires_at: float = 0.0
    refresh_in_flight: bool = False


class StatusCache:
    def __init__(self, ttl: float = 300):
        self.ttl = ttl
        self._lock = threading.Lock()
        self._entries: Dict[str, StatusCacheEntry] = {}
        self._flights: Dict[str, _Flight] = {}

    def get(self, key: str) -> Optional[ServiceStatus]:
        """Return the cached value for key, fresh or not. Never blocks on I/O."""
        with self._lock:
            entry = self._entries.get(key)
            return entry.value if entry else None

    def get_fresh(self, key: str) -> Optional[ServiceStatus]:
        with self._lock:
            entry = self._entries.get(key)
            if entry and entry.value is not None and time.monotonic() < entry.expires_at:
                return entry.value
            return None

    def in_flight(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return bool(entry and entry.refresh_in_flight)

    def acquire(self, key: str, force: bool = False) -> Tuple[Optional[ServiceStatus], Optional[_Flight], bool]:
        """
        Look up key and, if it needs a refresh, join or start its flight.

        Returns (value, flight, leader):
            (value, None, False)   fresh hit (only when force is False), never waits
            (None, flight, False)  stale or forced and a refresh is already running - wait on flight
            (None, flight, True)   caller must refresh and then call complete()
        """
        with self._lock:
            entry = self._entries.setdefault(key, StatusCacheEntry())
            # A fresh value is served even while a forced refresh of the key runs
            if not force and entry.value is not None and time.monotonic() < entry.expires_at:
                return entry.value, None, False
            if entry.refresh_in_flight:
                return None, self._flights[key], False
            flight = _Flight()
            entry.refresh_in_flight = True
            self._flights[key] = flight
            return None, flight, True

    def complete(self, key: str, flight: _Flight, value: Optional[ServiceStatus]) -> Optional[ServiceStatus]:
        """
        Finish the flight for key. A value of None means the refresh failed:
        the previous value (if any) stays in place, stale.

        Returns the value followers will see.
        """
        with self._lock:
            entry = self._entries.setdefault(key, StatusCacheEntry())
            if value is not None:
                entry.value = value
                entry.expires_at = time.monotonic() + self.ttl
            entry.refresh_in_flight = False
            if self._flights.get(key) is flight:
                del self._flights[key]
            flight.value = entry.value
        flight.done.set()
        return flight.value

    def invalidate(self, key: str):
        with self._lock:
            entry = self._entries.get(key)
            if entry:
                entry.expires_at = 0.0

    def keys(self):
        with self._lock:
            return [k for k, e in self._entries.items() if e.value is not None]

    def __len__(self):
        return len(self.keys())
