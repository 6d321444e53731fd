"""
Tests for wiring/state.py and wiring/delayed.py - Runtime State.

Covers:
- ServiceCache write-once semantics
- LoadingSet acquisition, release and cycle reporting
- DelayedCallQueue grouping and discarding
"""
import pytest

from core.errors import CircularDependencyError, ContainerError
from wiring.delayed import DelayedCall, DelayedCallQueue
from wiring.state import LoadingSet, ServiceCache


# =============================================================================
# ServiceCache
# =============================================================================

class TestServiceCache:
    """Tests for the service cache."""

    def test_add_and_get(self):
        cache = ServiceCache()
        service = object()

        cache.add("a", service)

        assert cache.get("a") is service
        assert "a" in cache
        assert cache.ids() == ["a"]
        assert len(cache) == 1

    def test_never_replaced(self):
        cache = ServiceCache()
        first = object()
        cache.add("a", first)

        with pytest.raises(ContainerError, match="Can not redeclare already registered service with name a"):
            cache.add("a", object())

        assert cache.get("a") is first


# =============================================================================
# LoadingSet
# =============================================================================

class TestLoadingSet:
    """Tests for the loading set."""

    def test_acquire_releases_on_exit(self):
        loading = LoadingSet()

        with loading.acquire("a"):
            assert "a" in loading
            assert loading.ids() == ["a"]

        assert "a" not in loading
        assert len(loading) == 0

    def test_acquire_releases_on_failure(self):
        loading = LoadingSet()

        with pytest.raises(RuntimeError):
            with loading.acquire("a"):
                raise RuntimeError("build failed")

        assert "a" not in loading
        with loading.acquire("a"):
            pass

    def test_reentry_is_circular(self):
        loading = LoadingSet()

        with loading.acquire("a"):
            with loading.acquire("b"):
                with pytest.raises(CircularDependencyError) as exc_info:
                    with loading.acquire("a"):
                        pass

                assert exc_info.value.loading == ["a", "b"]
                # The outer entries are still held
                assert loading.ids() == ["a", "b"]

    def test_attach_instance(self):
        loading = LoadingSet()
        instance = object()

        with loading.acquire("a"):
            assert not loading.has_instance("a")
            loading.attach("a", instance)
            assert loading.has_instance("a")
            assert loading.instance("a") is instance

        assert not loading.has_instance("a")

    def test_attach_requires_loading(self):
        with pytest.raises(ContainerError):
            LoadingSet().attach("a", object())


# =============================================================================
# DelayedCallQueue
# =============================================================================

class TestDelayedCallQueue:
    """Tests for the delayed call queue."""

    def test_pop_in_registration_order(self):
        queue = DelayedCallQueue()
        first = DelayedCall("y", "x", "set_peer", ("@!y",))
        second = DelayedCall("y", "z", "set_peer", ("@!y",))
        queue.add(first)
        queue.add(second)

        assert len(queue) == 2
        assert queue.pending("y") == [first, second]
        assert queue.pop("y") == [first, second]
        assert queue.pop("y") == []
        assert len(queue) == 0

    def test_pending_is_a_copy(self):
        queue = DelayedCallQueue()
        queue.add(DelayedCall("y", "x", "set_peer"))

        queue.pending("y").clear()

        assert len(queue.pending("y")) == 1

    def test_discard_caller(self):
        queue = DelayedCallQueue()
        queue.add(DelayedCall("y", "x", "set_peer"))
        queue.add(DelayedCall("y", "z", "set_peer"))
        queue.add(DelayedCall("w", "x", "link"))

        assert queue.discard_caller("x") == 2

        assert [call.caller_id for call in queue.pending("y")] == ["z"]
        assert queue.pending("w") == []
        assert len(queue) == 1
