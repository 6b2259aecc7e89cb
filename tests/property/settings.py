# tests/property/settings.py
"""Hypothesis example budgets shared by the property suite.

Decorate property tests with one of these instead of inline
@settings(max_examples=...), so intensity is tuned in one place:

    from tests.property.settings import STANDARD_SETTINGS

    @given(graph=graph_states())
    @STANDARD_SETTINGS
    def test_something(graph: GraphState) -> None:
        ...

The active profile from tests/conftest.py still supplies deadlines and
phases.
"""

from hypothesis import settings

# Cache key and canonical hashing must not depend on ordering
DETERMINISM_SETTINGS = settings(max_examples=500)

# Cycle detection and other single-component properties
STANDARD_SETTINGS = settings(max_examples=100)

# Runs every rule over every element of a generated graph
SLOW_SETTINGS = settings(max_examples=50)
