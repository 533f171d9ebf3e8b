import asyncio

from core.rate_limit import RateLimitStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_blocks_after_limit():
    clock = FakeClock()
    store = RateLimitStore(max_requests=3, window_seconds=60, clock=clock)

    results = [store.hit("login:1.2.3.4") for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[-1].reset_at == 1060.0


def test_window_resets_after_expiry():
    clock = FakeClock()
    store = RateLimitStore(max_requests=1, window_seconds=60, clock=clock)
    store.hit("a")
    assert not store.hit("a").allowed

    clock.now += 61
    assert store.hit("a").allowed


def test_identifiers_are_independent():
    store = RateLimitStore(max_requests=1, window_seconds=60, clock=FakeClock())
    store.hit("a")
    assert store.hit("b").allowed


def test_reset():
    store = RateLimitStore(max_requests=1, window_seconds=60, clock=FakeClock())
    store.hit("a")
    store.reset("a")
    assert store.hit("a").allowed


def test_sweep_drops_expired_windows():
    clock = FakeClock()
    store = RateLimitStore(window_seconds=10, clock=clock)
    store.hit("old")
    clock.now += 5
    store.hit("new")
    clock.now += 6

    assert store.sweep() == 1
    assert len(store) == 1


def test_oldest_entries_evicted_when_full():
    store = RateLimitStore(max_entries=2, clock=FakeClock())
    for key in ("a", "b", "c"):
        store.hit(key)

    assert len(store) == 2
    # "a" was evicted, so it starts a fresh window
    assert store.hit("a").remaining == store.max_requests - 1


def test_start_and_stop_sweeper():
    async def run():
        store = RateLimitStore(sweep_interval=3600)
        store.start()
        assert store._task is not None
        await store.stop()
        assert store._task is None

    asyncio.run(run())
