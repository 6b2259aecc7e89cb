# tests/conftest.py
"""Shared pytest fixtures and Hypothesis configuration."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from etlguard.core.catalogue import create_default_registry
from etlguard.core.registry import SchemaRegistry
from etlguard.engine import MockClock, ValidationEngine

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Tests that configure logging must not leak processors into later tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def registry() -> SchemaRegistry:
    """Registry holding the built-in component catalogue."""
    return create_default_registry()


@pytest.fixture
def empty_registry() -> SchemaRegistry:
    """Registry with no schemas: only static ETL classification applies."""
    return SchemaRegistry()


@pytest.fixture
def clock() -> MockClock:
    return MockClock(start=100.0)


@pytest.fixture
def engine(registry: SchemaRegistry, clock: MockClock) -> ValidationEngine:
    return ValidationEngine(registry, clock=clock)
