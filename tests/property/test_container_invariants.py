"""
Property-Based Tests for Container Invariants

Tests classification, singleton identity and reference determinism using
Hypothesis.
"""
import pytest
from hypothesis import given, settings, strategies as st
from hypothesis.stateful import Bundle, RuleBasedStateMachine, invariant, precondition, rule

from wiring import Container, LiteralValue, ParameterKind, classify
from tests.property.strategies import (
    literal_arguments,
    logger_classes,
    logger_registrations,
    marker_arguments,
    service_ids,
    tagged_arguments,
)
from tests.wiring import services


def _container():
    return Container(autowire=True, full_reference=True, strict_definitions=False)


# =============================================================================
# Classification
# =============================================================================

@pytest.mark.property
class TestClassificationProperties:
    """Classification is total and preserves the identifier."""

    @given(literal_arguments)
    def test_non_markers_are_literals(self, raw):
        parameter = classify(raw)

        assert parameter.kind is ParameterKind.LITERAL
        expected = raw.value if isinstance(raw, LiteralValue) else raw
        assert parameter.value == expected

    @given(marker_arguments)
    def test_markers_strip_their_prefix(self, raw):
        parameter = classify(raw)

        assert parameter.is_reference
        prefix = "@" if parameter.kind is ParameterKind.REQUIRED_REFERENCE else raw[:2]
        assert prefix + parameter.value == raw

    @given(tagged_arguments)
    def test_tagged_values_match_markers(self, raw):
        assert classify(raw) == classify(str(raw))


# =============================================================================
# Container
# =============================================================================

@pytest.mark.property
class TestContainerProperties:
    """Singletons and deterministic references."""

    @given(registrations=logger_registrations(), data=st.data())
    @settings(max_examples=50, deadline=None)
    def test_first_registered_wins_for_any_build_order(self, registrations, data):
        container = _container()
        for service_id, cls in registrations:
            container.add_definition(service_id, cls)

        ids = [service_id for service_id, _ in registrations]
        for service_id in data.draw(st.permutations(ids)):
            container.get(service_id)

        assert container.get_by_reference(services.Logger) is container.get(ids[0])
        assert container.implementers(services.Logger) == ids

    @given(registrations=logger_registrations())
    @settings(max_examples=50, deadline=None)
    def test_singleton_identity(self, registrations):
        container = _container()
        for service_id, cls in registrations:
            container.add_definition(service_id, cls)

        first = {service_id: container.get(service_id) for service_id, _ in registrations}

        for service_id, cls in registrations:
            assert container.get(service_id) is first[service_id]
            assert type(first[service_id]) is cls

    @given(service_id=service_ids, failures=st.integers(min_value=0, max_value=3))
    @settings(max_examples=30, deadline=None)
    def test_failed_builds_can_be_retried(self, service_id, failures):
        services.Flaky.failures_left = failures
        container = _container()
        container.add_definition(service_id, services.Flaky)

        for _ in range(failures):
            with pytest.raises(RuntimeError):
                container.get(service_id)

        assert isinstance(container.get(service_id), services.Flaky)
        assert container.loaded(service_id)


# =============================================================================
# Stateful
# =============================================================================

class ContainerStateMachine(RuleBasedStateMachine):
    """Interleaves definitions, redefinitions and lookups."""

    defined = Bundle("defined")

    def __init__(self):
        super().__init__()
        self.container = _container()
        self.registered = []
        self.built = {}

    @rule(target=defined, service_id=service_ids, cls=logger_classes)
    def define(self, service_id, cls):
        if service_id in self.registered:
            return service_id
        self.container.add_definition(service_id, cls)
        self.registered.append(service_id)
        return service_id

    @rule(service_id=defined, cls=logger_classes)
    def redefine(self, service_id, cls):
        if service_id in self.built:
            return
        self.container.add_definition(service_id, cls)

    @rule(service_id=defined)
    def get(self, service_id):
        service = self.container.get(service_id)
        self.built.setdefault(service_id, service)
        assert service is self.built[service_id]

    @invariant()
    def nothing_left_loading(self):
        assert len(self.container._loading) == 0

    @invariant()
    def built_services_are_stable(self):
        for service_id, service in self.built.items():
            assert self.container.get(service_id) is service

    @precondition(lambda self: self.registered)
    @invariant()
    def first_logger_wins(self):
        first = self.container.get_by_reference(services.Logger)
        assert first is self.container.get(self.registered[0])
        self.built.setdefault(self.registered[0], first)


ContainerStateMachine.TestCase.settings = settings(max_examples=30, stateful_step_count=20, deadline=None)
TestContainerStateMachine = pytest.mark.property(ContainerStateMachine.TestCase)
