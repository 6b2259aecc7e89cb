# src/etlguard/core/__init__.py
"""Core services: schema registry, default catalogue, cycle detection, config, logging."""
