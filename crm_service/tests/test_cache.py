from __future__ import annotations

import pytest

from crm_service.app.cache import TtlCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_get_returns_value_until_ttl_expires(clock) -> None:
    cache = TtlCache(max_size=3, default_ttl=10, clock=clock)
    cache.set("a", [1, 2])

    clock.advance(9)
    assert cache.get("a") == [1, 2]

    clock.advance(1)
    assert cache.get("a") is None
    assert len(cache) == 0


def test_reads_do_not_extend_ttl(clock) -> None:
    cache = TtlCache(max_size=3, default_ttl=10, clock=clock)
    cache.set("a", 1)

    clock.advance(5)
    assert cache.get("a") == 1
    clock.advance(5)

    assert cache.get("a") is None


def test_set_evicts_oldest_entry_when_full(clock) -> None:
    cache = TtlCache(max_size=2, default_ttl=10, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)

    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3
    assert len(cache) == 2


def test_overwriting_existing_key_does_not_evict(clock) -> None:
    cache = TtlCache(max_size=2, default_ttl=10, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)

    assert cache.get("a") == 10
    assert cache.get("b") == 2


def test_cleanup_removes_only_expired_entries(clock) -> None:
    cache = TtlCache(max_size=5, default_ttl=10, clock=clock)
    cache.set("old", 1)
    cache.set("older", 2)
    clock.advance(5)
    cache.set("fresh", 3)

    clock.advance(6)

    assert cache.cleanup() == 2
    assert len(cache) == 1
    assert cache.get("fresh") == 3


def test_delete_and_clear(clock) -> None:
    cache = TtlCache(max_size=5, default_ttl=10, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.delete("a") is True
    assert cache.delete("a") is False

    cache.clear()
    assert len(cache) == 0


def test_max_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        TtlCache(max_size=0)
