"""
Tests for wiring/references.py - Reference Index.
"""
from unittest.mock import Mock

import pytest

from core.errors import ServiceNotFoundError
from wiring.introspection import InspectIntrospector
from wiring.references import ReferenceIndex
from tests.wiring import services
from tests.wiring.services import path


@pytest.fixture
def index():
    return ReferenceIndex(InspectIntrospector())


class TestReferenceIndex:
    """Tests for recording and resolving references."""

    def test_first_registered_wins(self, index):
        index.record_class("console", services.ConsoleLogger)
        index.record_class("file", services.FileLogger)

        assert index.resolve(services.Logger) == "console"
        assert index.resolve(path("Logger")) == "console"
        assert index.implementers(services.Logger) == ["console", "file"]

    def test_class_indexed_under_itself(self, index):
        names = index.record_class("file", services.FileLogger)

        assert names == [path("FileLogger"), path("Logger")]
        assert index.resolve(services.FileLogger) == "file"

    def test_manual_reference(self, index):
        index.record_reference("mailer", "app.Notifier")

        assert index.has("app.Notifier")
        assert index.resolve("app.Notifier") == "mailer"

    def test_unknown_reference(self, index):
        with pytest.raises(ServiceNotFoundError) as exc_info:
            index.resolve(services.Logger)

        assert isinstance(exc_info.value, LookupError)
        assert path("Logger") in str(exc_info.value)
        assert not index.has(services.Logger)
        assert index.implementers(services.Logger) == []

    def test_implementers_is_a_copy(self, index):
        index.record_reference("a", "x.Y")

        index.implementers("x.Y").append("b")

        assert index.implementers("x.Y") == ["a"]

    def test_class_references_computed_once(self):
        introspector = Mock()
        introspector.class_references.return_value = [path("ConsoleLogger"), path("Logger")]
        index = ReferenceIndex(introspector)

        index.record_class("a", services.ConsoleLogger)
        index.record_class("b", services.ConsoleLogger)

        introspector.class_references.assert_called_once_with(services.ConsoleLogger)
        assert index.implementers(services.Logger) == ["a", "b"]
