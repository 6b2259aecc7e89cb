# src/etlguard/engine/__init__.py
"""Validation engine: rule orchestration, result caching and severity policy.

Example:
    from etlguard.engine import assert_executable, create_default_validation_engine

    engine = create_default_validation_engine()
    summary = engine.validate_graph(graph)
    assert_executable(summary)
"""

from etlguard.engine.cache import ValidationCache, graph_cache_key
from etlguard.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from etlguard.engine.engine import (
    TEMP_EDGE_ID,
    ValidationEngine,
    assert_executable,
    create_default_validation_engine,
)

__all__ = [
    "DEFAULT_CLOCK",
    "TEMP_EDGE_ID",
    "Clock",
    "MockClock",
    "SystemClock",
    "ValidationCache",
    "ValidationEngine",
    "assert_executable",
    "create_default_validation_engine",
    "graph_cache_key",
]
