"""
Core Package - Sales Dashboard Engine
dashboard_engine/core/__init__.py

Core infrastructure: exceptions, logging. Service getters live in
dashboard_engine.core.dependencies.
"""

from dashboard_engine.core.exceptions import (
    ConfigurationError,
    EngineException,
    HierarchyLookupError,
    UnknownViewError,
    WeightSumError,
)
from dashboard_engine.core.logging import configure_logging

__all__ = [
    # Exceptions
    "ConfigurationError",
    "EngineException",
    "HierarchyLookupError",
    "UnknownViewError",
    "WeightSumError",
    # Logging
    "configure_logging",
]
