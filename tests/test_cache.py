import threading

import pytest

from backend.congregation_stats.cache import InvalidationChannel, SnapshotCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class CountingCompute:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return {"generation": self.calls}


def test_serves_same_object_within_ttl():
    compute, clock = CountingCompute(), FakeClock()
    cache = SnapshotCache(compute, ttl_seconds=60, clock=clock)

    first = cache.get()
    clock.now += 59
    second = cache.get()

    assert first is second
    assert compute.calls == 1


def test_recomputes_after_ttl():
    compute, clock = CountingCompute(), FakeClock()
    cache = SnapshotCache(compute, ttl_seconds=60, clock=clock)

    cache.get()
    clock.now += 60
    assert cache.get() == {"generation": 2}


def test_invalidate_forces_recompute():
    compute = CountingCompute()
    cache = SnapshotCache(compute, clock=FakeClock())

    cache.get()
    cache.invalidate()
    assert cache.get() == {"generation": 2}


def test_channel_publish_invalidates_subscribed_caches():
    channel = InvalidationChannel()
    first_compute, second_compute = CountingCompute(), CountingCompute()
    first = SnapshotCache(first_compute, clock=FakeClock(), invalidation=channel)
    second = SnapshotCache(second_compute, clock=FakeClock(), invalidation=channel)
    first.get()
    second.get()

    channel.publish("congregant updated")

    first.get()
    second.get()
    assert first_compute.calls == 2
    assert second_compute.calls == 2


def test_failed_compute_is_not_cached():
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("database down")
        return "snapshot"

    cache = SnapshotCache(flaky, clock=FakeClock())
    with pytest.raises(RuntimeError):
        cache.get()
    assert cache.get() == "snapshot"
    assert len(attempts) == 2


def test_concurrent_misses_compute_once():
    release = threading.Event()
    calls = []

    def slow_compute():
        calls.append(1)
        release.wait(timeout=5)
        return object()

    cache = SnapshotCache(slow_compute, ttl_seconds=60)
    results = []
    threads = [threading.Thread(target=lambda: results.append(cache.get())) for _ in range(8)]
    for thread in threads:
        thread.start()
    release.set()
    for thread in threads:
        thread.join(timeout=5)

    assert len(calls) == 1
    assert len(results) == 8
    assert all(result is results[0] for result in results)


def test_invalidation_during_recompute_is_not_lost():
    channel = InvalidationChannel()
    started, release = threading.Event(), threading.Event()
    data = {"version": 1}

    def compute():
        version = data["version"]
        started.set()
        release.wait(timeout=5)
        return version

    cache = SnapshotCache(compute, ttl_seconds=60, clock=FakeClock(), invalidation=channel)
    first = []
    worker = threading.Thread(target=lambda: first.append(cache.get()))
    worker.start()
    assert started.wait(timeout=5)

    data["version"] = 2
    channel.publish("congregant updated")
    release.set()
    worker.join(timeout=5)

    assert first == [1]
    assert cache.get() == 2
    assert cache.get() == 2
