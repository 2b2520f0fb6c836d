from knowntoads.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_keys_are_case_insensitive():
    cache = TTLCache(60)
    cache.put("0xAbC", 1)
    assert cache.get("0xabc") == 1
    assert cache.keys() == ["0xabc"]


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.put("a", "v")

    clock.now = 10
    assert cache.get("a") == "v"
    assert cache.age("a") == 10

    clock.now = 10.5
    assert cache.get("a") is None
    assert len(cache) == 0


def test_negative_results_are_cached():
    cache = TTLCache(10)
    cache.put("token", [])
    assert cache.contains("token")
    assert cache.get("token", "miss") == []
    assert not cache.contains("other")


def test_clear_one_or_all():
    cache = TTLCache(10)
    cache.put("a", 1)
    cache.put("b", 2)

    cache.clear("A")
    assert not cache.contains("a")
    assert cache.contains("b")

    cache.clear()
    assert len(cache) == 0
    assert cache.age("b") is None
