from pyfibernet.decorators import uses_cache


class Counter:
    def __init__(self, expire=60):
        self.apicache = {}
        self.apicachetime = {}
        self.apicacheexpire = expire
        self.calls = 0

    @uses_cache('[args-name]', cacheable=lambda r: r != "skip")
    def lookup(self, name, force=False):
        self.calls += 1
        return name if name != "none" else None

    @uses_cache('fixed')
    def fixed(self, force=False):
        self.calls += 1
        return self.calls


def test_dynamic_key_caches_per_argument():
    c = Counter()
    assert c.lookup("a") == "a"
    assert c.lookup("a") == "a"
    assert c.lookup("b") == "b"
    assert c.calls == 2
    assert set(c.apicache) == {"a", "b"}


def test_force_bypasses_cache():
    c = Counter()
    assert c.fixed() == 1
    assert c.fixed() == 1
    assert c.fixed(force=True) == 2
    assert c.fixed() == 2


def test_expired_entry_is_refetched():
    c = Counter(expire=0)
    c.fixed()
    c.fixed()
    assert c.calls == 2


def test_none_and_uncacheable_results_not_stored():
    c = Counter()
    c.lookup("none")
    c.lookup("skip")
    assert c.apicache == {}
    c.lookup("skip")
    assert c.calls == 3
