"""
Tests for delayed calls - calls waiting for a service that is not built yet.
"""
import pytest

from core.errors import ContainerError
from wiring import LoadedReference
from tests.wiring import services


class TestDelayedCalls:
    """Delivery of calls that pass loaded-only references."""

    def test_delivered_once_after_target_is_built(self, container):
        container.set_services({
            "x": {"class": services.Node, "arguments": {"name": "x"}, "calls": [{"set_peer": ["@!y"]}]},
            "y": {"class": services.Node, "arguments": {"name": "y"}, "calls": ["init"]},
        })

        x = container.get("x")

        assert x.peer is None
        assert [call.caller_id for call in container.pending_calls("y")] == ["x"]

        y = container.get("y")

        # y was fully initialized when the call reached x
        assert x.peer is y
        assert x.events == [("set_peer", "y", True)]
        assert container.pending_calls("y") == []

        container.get("y")
        container.get("x")

        assert x.events == [("set_peer", "y", True)]

    def test_runs_immediately_when_target_loaded(self, container):
        container.set_services({
            "y": {"class": services.Node, "arguments": {"name": "y"}},
            "x": {"class": services.Node, "calls": [{"set_peer": [LoadedReference("y")]}]},
        })
        y = container.get("y")

        assert container.get("x").peer is y
        assert container.pending_calls("y") == []

    def test_each_caller_delivered(self, container):
        container.set_services({
            "a": {"class": services.Node, "calls": [{"set_peer": ["@!target"]}]},
            "b": {"class": services.Node, "calls": [{"set_peer": ["@!target"]}]},
            "target": {"class": services.Node, "arguments": {"name": "target"}},
        })
        a = container.get("a")
        b = container.get("b")

        target = container.get("target")

        assert a.peer is target
        assert b.peer is target

    def test_waits_for_every_loaded_reference(self, container):
        container.set_services({
            "x": {"class": services.Node, "calls": [{"link": ["@!first", "@!second"]}]},
            "first": {"class": services.Node, "arguments": {"name": "first"}},
            "second": {"class": services.Node, "arguments": {"name": "second"}},
        })
        x = container.get("x")

        container.get("first")
        assert x.events == []
        assert [call.method for call in container.pending_calls("second")] == ["link"]

        container.get("second")
        assert x.events == [("link", "first", "second")]

    def test_delivered_to_caller_still_building(self, container):
        container.set_services({
            "x": {
                "class": services.Node,
                "arguments": {"name": "x"},
                "calls": [{"set_peer": ["@!y"]}, {"link": ["@y", "@y"]}],
            },
            "y": {"class": services.Node, "arguments": {"name": "y"}},
        })

        x = container.get("x")

        assert x.events == [("set_peer", "y", False), ("link", "y", "y")]
        assert x.peer is container.get("y")

    def test_mutual_setters(self, container):
        container.set_services({
            "x": {"class": services.Node, "arguments": {"name": "x"}, "calls": [{"set_peer": ["@!y"]}]},
            "y": {"class": services.Node, "arguments": {"name": "y"}, "calls": [{"set_peer": ["@x"]}]},
        })

        y = container.get("y")
        x = container.get("x")

        assert y.peer is x
        assert x.peer is y

    def test_failed_caller_discards_its_calls(self, container):
        container.set_services({
            "x": {"class": services.Node, "calls": [{"set_peer": ["@!y"]}, "missing"]},
            "y": services.Node,
        })

        with pytest.raises(ContainerError):
            container.get("x")

        assert container.pending_calls("y") == []
        container.get("y")
        assert not container.loaded("x")

    def test_failed_delivery_keeps_other_callers(self, container):
        container.set_services({
            "a": {"class": services.Broken, "calls": [{"reject": ["@!t"]}]},
            "b": {"class": services.Node, "arguments": {"name": "b"}, "calls": [{"set_peer": ["@!t"]}]},
            "t": {"class": services.Node, "arguments": {"name": "t"}},
        })
        container.get("a")
        b = container.get("b")

        with pytest.raises(ContainerError, match="Delayed call a.reject waiting for t failed") as exc_info:
            container.get("t")

        error = exc_info.value
        assert error.service_id == "a"
        assert isinstance(error.cause, ValueError)
        assert error.context.service_id == "t"
        # t itself was built; the failure belongs to the caller
        assert container.loaded("t")
        assert b.peer is container.get("t")
        assert container.pending_calls("t") == []

    def test_failed_delivery_order_does_not_matter(self, container):
        container.set_services({
            "b": {"class": services.Node, "arguments": {"name": "b"}, "calls": [{"set_peer": ["@!t"]}]},
            "a": {"class": services.Broken, "calls": [{"reject": ["@!t"]}]},
            "c": {"class": services.Node, "arguments": {"name": "c"}, "calls": [{"set_peer": ["@!t"]}]},
            "t": {"class": services.Node, "arguments": {"name": "t"}},
        })
        callers = [container.get(service_id) for service_id in ("b", "a", "c")]

        with pytest.raises(ContainerError):
            container.get("t")

        t = container.get("t")
        assert callers[0].peer is t
        assert callers[2].peer is t
