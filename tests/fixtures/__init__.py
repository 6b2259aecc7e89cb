# tests/fixtures/__init__.py
"""Test-only builders for graph snapshots."""
