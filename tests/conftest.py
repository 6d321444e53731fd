"""
wiring - Test Configuration

Pytest fixtures and configuration for all tests.
"""
import pytest
from typing import Any, Dict

from hypothesis import settings

from wiring import Container
from tests.wiring.services import Flaky, path

settings.register_profile("ci", max_examples=200, deadline=None)
settings.register_profile("dev", max_examples=50, deadline=None)
settings.load_profile("dev")


@pytest.fixture
def container() -> Container:
    """Container with auto-wiring and full references, independent of the environment."""
    return Container(autowire=True, full_reference=True, strict_definitions=False)


@pytest.fixture
def logger_app_config() -> Dict[str, Any]:
    """The logger/app scenario, classes given as dotted paths."""
    return {
        "logger": {"class": path("ConsoleLogger")},
        "app": {"class": path("App"), "arguments": ["@logger"]},
    }


@pytest.fixture
def flaky():
    """Flaky with its class-level counters reset."""
    Flaky.failures_left = 0
    Flaky.constructed = 0
    yield Flaky
    Flaky.failures_left = 0
    Flaky.constructed = 0


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "property: marks property-based tests using Hypothesis")
    config.addinivalue_line("markers", "integration: marks tests wiring several components together")
