import threading
import time

from pyfibernet.status.cache import StatusCache
from pyfibernet.status.models import ServiceStatus, TrackedService

NETFLIX = TrackedService(key="netflix", name="Netflix")


def test_leader_then_hit():
    cache = StatusCache(ttl=60)
    value, flight, leader = cache.acquire("netflix")
    assert value is None and leader is True
    assert cache.in_flight("netflix")
    status = ServiceStatus.unknown(NETFLIX)
    assert cache.complete("netflix", flight, status) is status
    assert not cache.in_flight("netflix")

    value, flight, leader = cache.acquire("netflix")
    assert value is status
    assert flight is None and leader is False
    assert cache.get_fresh("netflix") is status


def test_second_caller_joins_flight():
    cache = StatusCache(ttl=60)
    _, flight, leader = cache.acquire("netflix")
    _, joined, second_leader = cache.acquire("netflix")
    assert leader is True and second_leader is False
    assert joined is flight


def test_force_starts_new_flight_on_fresh_entry():
    cache = StatusCache(ttl=60)
    _, flight, _ = cache.acquire("netflix")
    cache.complete("netflix", flight, ServiceStatus.unknown(NETFLIX))
    value, flight, leader = cache.acquire("netflix", force=True)
    assert value is None and leader is True


def test_failed_refresh_keeps_previous_value():
    cache = StatusCache(ttl=60)
    old = ServiceStatus.unknown(NETFLIX)
    _, flight, _ = cache.acquire("netflix")
    cache.complete("netflix", flight, old)
    cache.invalidate("netflix")
    assert cache.get_fresh("netflix") is None

    _, flight, leader = cache.acquire("netflix")
    assert leader is True
    assert cache.complete("netflix", flight, None) is old
    assert cache.get("netflix") is old
    assert not cache.in_flight("netflix")


def test_expiry():
    cache = StatusCache(ttl=0.01)
    _, flight, _ = cache.acquire("netflix")
    cache.complete("netflix", flight, ServiceStatus.unknown(NETFLIX))
    time.sleep(0.05)
    assert cache.get_fresh("netflix") is None
    assert cache.get("netflix") is not None


def test_waiters_wake_on_complete():
    cache = StatusCache(ttl=60)
    _, flight, _ = cache.acquire("netflix")
    status = ServiceStatus.unknown(NETFLIX)
    joined = [cache.acquire("netflix")[1] for _ in range(5)]
    assert all(f is flight for f in joined)
    results = []

    threads = [threading.Thread(target=lambda f=f: results.append(f.wait(5))) for f in joined]
    for t in threads:
        t.start()
    cache.complete("netflix", flight, status)
    for t in threads:
        t.join(5)
    assert results == [status] * 5


def test_wait_timeout_returns_none():
    cache = StatusCache(ttl=60)
    _, flight, _ = cache.acquire("netflix")
    assert flight.wait(0.01) is None


def test_keys_and_len():
    cache = StatusCache(ttl=60)
    assert len(cache) == 0
    cache.acquire("netflix")
    assert cache.keys() == []
    _, flight, _ = cache.acquire("youtube")
    cache.complete("youtube", flight, ServiceStatus.unknown(NETFLIX))
    assert cache.keys() == ["youtube"]
    assert len(cache) == 1


def test_fresh_value_served_during_forced_refresh():
    cache = StatusCache(ttl=60)
    status = ServiceStatus.unknown(NETFLIX)
    _, flight, _ = cache.acquire("netflix")
    cache.complete("netflix", flight, status)

    _, forced, leader = cache.acquire("netflix", force=True)
    assert leader is True
    value, joined, follower_leads = cache.acquire("netflix")
    assert value is status
    assert joined is None and follower_leads is False
    cache.complete("netflix", forced, status)


def test_stale_value_joins_running_refresh():
    cache = StatusCache(ttl=60)
    _, flight, _ = cache.acquire("netflix")
    cache.complete("netflix", flight, ServiceStatus.unknown(NETFLIX))
    cache.invalidate("netflix")
    _, running, _ = cache.acquire("netflix")
    value, joined, leader = cache.acquire("netflix")
    assert value is None and leader is False
    assert joined is running
