"""
Custom Hypothesis Strategies for Container Data

Provides strategies for service identifiers, raw arguments and
logger/app recipe graphs.
"""
import string

from hypothesis import strategies as st

from wiring.parameters import LiteralValue, LoadedReference, OptionalReference, Reference
from tests.wiring import services


# =============================================================================
# IDENTIFIERS
# =============================================================================

IDENTIFIER_ALPHABET = string.ascii_lowercase + string.digits + "_."

service_ids = st.text(alphabet=IDENTIFIER_ALPHABET, min_size=1, max_size=12).filter(
    lambda value: value != "container"
)


def unique_service_ids(min_size=1, max_size=6):
    return st.lists(service_ids, min_size=min_size, max_size=max_size, unique=True)


# =============================================================================
# RAW ARGUMENTS
# =============================================================================

# Strings that never start with a reference marker
plain_strings = st.text(max_size=20).filter(lambda value: not value.startswith("@"))

literal_arguments = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(),
    st.floats(allow_nan=False),
    plain_strings,
    st.builds(LiteralValue, st.text(max_size=20)),
)

marker_arguments = st.one_of(
    service_ids.map(lambda value: "@" + value),
    service_ids.map(lambda value: "@?" + value),
    service_ids.map(lambda value: "@!" + value),
)

tagged_arguments = st.one_of(
    st.builds(Reference, service_ids),
    st.builds(OptionalReference, service_ids),
    st.builds(LoadedReference, service_ids),
)

raw_arguments = st.one_of(literal_arguments, marker_arguments, tagged_arguments)


# =============================================================================
# RECIPES
# =============================================================================

LOGGER_CLASSES = [services.ConsoleLogger, services.FileLogger]

logger_classes = st.sampled_from(LOGGER_CLASSES)


@st.composite
def logger_registrations(draw, min_size=1, max_size=5):
    """Distinct logger ids with their classes, in registration order."""
    ids = draw(unique_service_ids(min_size=min_size, max_size=max_size))
    return [(service_id, draw(logger_classes)) for service_id in ids]

