from cache import ORDERS_PREFIX, ReadCache, orders_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def counting_fetch(values):
    calls = []

    def fetch():
        calls.append(1)
        return values[len(calls) - 1]
    return fetch, calls


def test_hit_within_ttl():
    clock = FakeClock()
    cache = ReadCache(clock)
    fetch, calls = counting_fetch(["first", "second"])

    assert cache.get_or_fetch("k", 60, fetch) == "first"
    clock.now += 59
    assert cache.get_or_fetch("k", 60, fetch) == "first"
    assert len(calls) == 1


def test_refetch_after_ttl():
    clock = FakeClock()
    cache = ReadCache(clock)
    fetch, calls = counting_fetch(["first", "second"])

    cache.get_or_fetch("k", 60, fetch)
    clock.now += 60
    assert cache.get_or_fetch("k", 60, fetch) == "second"
    assert len(calls) == 2


def test_invalidate_forces_refetch():
    cache = ReadCache()
    fetch, calls = counting_fetch(["first", "second"])

    cache.get_or_fetch("k", 300, fetch)
    cache.invalidate("k", "missing")

    assert "k" not in cache
    assert cache.get_or_fetch("k", 300, fetch) == "second"


def test_invalidate_prefix_drops_all_order_ranges():
    cache = ReadCache()
    cache.get_or_fetch(orders_key(), 60, lambda: [])
    cache.get_or_fetch(orders_key("2026-01-01", "2026-01-31"), 60, lambda: [])
    cache.get_or_fetch("products:public", 60, lambda: [])

    cache.invalidate_prefix(ORDERS_PREFIX)

    assert orders_key() not in cache
    assert orders_key("2026-01-01", "2026-01-31") not in cache
    assert "products:public" in cache


def test_orders_key_distinguishes_ranges():
    assert orders_key() == "orders:.."
    assert orders_key("2026-01-01", None) != orders_key(None, "2026-01-01")
