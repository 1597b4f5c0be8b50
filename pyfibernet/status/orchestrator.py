# pyFiberNet Module - Status Orchestrator
# -*- coding: utf-8 -*-
"""
 Serve third-party service status from a TTL cache and drive the
 primary -> AI fallback chain when an entry is missing or stale

 Class
    StatusOrchestrator(services, source, fallback, cache, ttl, max_workers, wait_timeout)

 Functions
    get_status(service_key)         # ServiceStatus (cached, or refreshed once per key)
    force_refresh_all()             # Dict of service_key -> ServiceStatus, bypassing freshness
    get_cached(service_key)         # ServiceStatus without any I/O (unknown if never refreshed)
    snapshot()                      # Dict of service_key -> cached ServiceStatus
    get_instabilities(refresh)      # List of degraded ServiceStatus
    is_tracked(service_key)         # True if the key is in the registry

 Refresh rules
    * primary answer unknown -> ask the fallback
    * fallback overrides only with a non-unknown answer
    * unknown from both is a final result for this cycle (cached, not an error)
    * unexpected errors keep the previous value and never leave a key locked
"""
import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional

from pyfibernet.exceptions import UntrackedServiceError
from pyfibernet.status.cache import StatusCache, _Flight
from pyfibernet.status.models import RawState, ServiceStatus, TrackedService

log = logging.getLogger(__name__)

DEFAULT_TTL = 300  # 5 minutes
DEFAULT_WAIT_TIMEOUT = 30  # primary + fallback timeouts plus margin


class StatusOrchestrator:
    def __init__(self, services: Iterable[TrackedService], source, fallback=None,
                 cache: Optional[StatusCache] = None, ttl: float = DEFAULT_TTL,
                 max_workers: Optional[int] = None, wait_timeout: float = DEFAULT_WAIT_TIMEOUT):
        self.services: Dict[str, TrackedService] = OrderedDict((s.key, s) for s in services)
        self.source = source
        self.fallback = fallback
        self.cache = cache if cache is not None else StatusCache(ttl)
        self.wait_timeout = wait_timeout
        pool_size = max_workers or max(4, len(self.services))
        self._executor = ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="pyfibernet")
        log.debug(f"Tracking {len(self.services)} services (ttl={self.cache.ttl}s, {pool_size} workers)")

    @property
    def tracked_services(self) -> List[TrackedService]:
        return list(self.services.values())

    def is_tracked(self, service_key: str) -> bool:
        return service_key in self.services

    def _service(self, service_key: str) -> TrackedService:
        service = self.services.get(service_key)
        if service is None:
            raise UntrackedServiceError(service_key)
        return service

    # Read path

    def get_status(self, service_key: str) -> ServiceStatus:
        return self._refresh(self._service(service_key), force=False)

    def get_cached(self, service_key: str) -> ServiceStatus:
        service = self._service(service_key)
        return self.cache.get(service_key) or ServiceStatus.unknown(service, "not yet refreshed")

    def snapshot(self) -> Dict[str, ServiceStatus]:
        return OrderedDict((key, self.get_cached(key)) for key in self.services)

    def get_instabilities(self, refresh: bool = False) -> List[ServiceStatus]:
        if refresh:
            statuses = list(self._executor.map(self.get_status, list(self.services)))
        else:
            statuses = list(self.snapshot().values())
        return [status for status in statuses if status.degraded]

    # Refresh path

    def force_refresh_all(self) -> Dict[str, ServiceStatus]:
        log.info(f"Refreshing status of {len(self.services)} services")
        futures = OrderedDict(
            (key, self._executor.submit(self._refresh, service, True))
            for key, service in self.services.items()
        )
        results = OrderedDict()
        for key, future in futures.items():
            try:
                results[key] = future.result()
            except Exception as exc:
                log.error(f"Refresh of {key} failed: {exc!r}")
                results[key] = self.get_cached(key)
        degraded = [s.display_name for s in results.values() if s.degraded]
        log.info(f"Status refresh complete. {len(degraded)} services with problems {degraded}")
        return results

    def _refresh(self, service: TrackedService, force: bool) -> ServiceStatus:
        value, flight, leader = self.cache.acquire(service.key, force=force)
        if value is not None:
            log.debug(f"Using cached status for {service.key}")
            return value
        if not leader:
            return self._follow(service, flight)
        return self._lead(service, flight, force)

    def _follow(self, service: TrackedService, flight: _Flight) -> ServiceStatus:
        log.debug(f"Waiting for in-flight refresh of {service.key}")
        result = flight.wait(self.wait_timeout)
        if result is None:
            log.debug(f"No refreshed status for {service.key} - serving last known value")
            return self.cache.get(service.key) or ServiceStatus.unknown(service)
        return result

    def _lead(self, service: TrackedService, flight: _Flight, force: bool) -> ServiceStatus:
        status = None
        try:
            status = self._resolve(service, force)
        except Exception as exc:
            log.error(f"Unexpected error refreshing {service.key}: {exc!r}")
        finally:
            result = self.cache.complete(service.key, flight, status)
        return result or ServiceStatus.unknown(service)

    def _resolve(self, service: TrackedService, force: bool = False) -> ServiceStatus:
        result = self.source.fetch_status(service.key)
        if result.state == RawState.UNKNOWN and self.fallback is not None:
            log.debug(f"Primary source unknown for {service.key} - trying fallback")
            backup = self.fallback.classify(service.key, f"status_{service.key}", force=force)
            if backup.state != RawState.UNKNOWN:
                result = backup
            else:
                log.debug(f"Fallback also unknown for {service.key}")
        status = ServiceStatus.from_result(service, result)
        log.debug(f"Status {service.key}: {status.state.value} via {status.source_label}")
        return status

    def close(self):
        self._executor.shutdown(wait=False)
        for provider in (self.source, self.fallback):
            if provider is not None and hasattr(provider, 'close_session'):
                provider.close_session()
