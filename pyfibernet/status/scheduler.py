import logging
import threading
from typing import Optional

log = logging.getLogger(__name__)

DEFAULT_INTERVAL = 15 * 60  # seconds


class StatusScheduler:
    """Background thread that forces a full status refresh every interval.

    The first refresh runs as soon as the thread starts so the cache is
    populated before request traffic relies on it. Reads are never blocked
    by a tick, except for a key whose refresh is in flight at that moment.
    """

    def __init__(self, orchestrator):
        self.orchestrator = orchestrator
        self.interval = DEFAULT_INTERVAL
        self.ticks = 0
        self._stop: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self, interval_seconds: float = DEFAULT_INTERVAL, wait: bool = True,
              timeout: Optional[float] = None) -> bool:
        """
        Start the scheduler.

        Args:
            interval_seconds = Seconds between full refreshes
            wait             = If True, return only after the first refresh finished
            timeout          = Max seconds to wait for the first refresh (None = no limit)

        Returns True if the first refresh completed (always True when wait is False).
        """
        if self.running:
            log.debug("Scheduler already running")
            return True
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval = interval_seconds
        # Each run owns its events so a loop left over from a timed-out stop() stays stopped
        self._stop = threading.Event()
        first_cycle = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop, first_cycle, interval_seconds),
                                        name="pyfibernet-scheduler", daemon=True)
        self._thread.start()
        log.info(f"Status scheduler started (every {interval_seconds}s)")
        if wait:
            return first_cycle.wait(timeout)
        return True

    def stop(self, timeout: Optional[float] = 5.0):
        if self._stop is not None:
            self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                log.warning("Scheduler thread still finishing a refresh - it will exit afterwards")
            self._thread = None
        log.info("Status scheduler stopped")

    def _run(self, stop: threading.Event, first_cycle: threading.Event, interval: float):
        self._tick()
        first_cycle.set()
        while not stop.wait(interval):
            self._tick()

    def _tick(self):
        try:
            self.orchestrator.force_refresh_all()
        except Exception as exc:
            log.error(f"Error in status refresh: {exc!r}")
        finally:
            self.ticks += 1
