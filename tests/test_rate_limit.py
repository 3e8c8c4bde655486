import threading

from starlette.requests import Request

from rate_limit import (
    DEFAULT_CLIENT_ID,
    InMemoryCounterStore,
    RateLimiter,
    client_id_from_request,
)


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _request(headers: dict[str, str]) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "headers": raw})


def test_fifty_first_request_in_window_is_denied() -> None:
    clock = FakeClock()
    limiter = RateLimiter(limit=50, window_secs=60, clock=clock)

    results = [limiter.check("10.0.0.1") for _ in range(51)]

    assert all(results[:50])
    assert results[50] is False


def test_window_resets_only_after_it_has_elapsed() -> None:
    clock = FakeClock()
    limiter = RateLimiter(limit=2, window_secs=60, clock=clock)
    for _ in range(3):
        limiter.check("10.0.0.1")

    clock.now += 60
    assert limiter.check("10.0.0.1") is False

    clock.now += 0.5
    assert limiter.check("10.0.0.1") is True
    assert limiter.check("10.0.0.1") is True
    assert limiter.check("10.0.0.1") is False


def test_clients_are_counted_separately() -> None:
    limiter = RateLimiter(limit=1, window_secs=60, clock=FakeClock())

    assert limiter.check("a")
    assert limiter.check("b")
    assert not limiter.check("a")


def test_prune_drops_only_expired_windows() -> None:
    clock = FakeClock()
    store = InMemoryCounterStore()
    limiter = RateLimiter(store, limit=1, window_secs=60, clock=clock)
    limiter.check("old")
    clock.now += 30
    limiter.check("fresh")

    clock.now += 31
    assert limiter.prune() == 1
    assert len(store) == 1
    assert limiter.check("old") is True
    assert limiter.check("fresh") is False


def test_concurrent_hits_are_all_counted() -> None:
    store = InMemoryCounterStore()

    def worker() -> None:
        for _ in range(200):
            store.hit("shared", 0.0, 60.0)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.hit("shared", 0.0, 60.0) == 8 * 200 + 1


def test_client_id_uses_first_forwarded_address() -> None:
    request = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
    assert client_id_from_request(request) == "203.0.113.7"


def test_client_id_falls_back_to_default() -> None:
    assert client_id_from_request(_request({})) == DEFAULT_CLIENT_ID
