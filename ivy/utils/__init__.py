"""
Utility modules for the Ivy engine.
"""

from .logging import get_logger, EngineLogger
from .process_registry import ProcessRegistry, get_process_registry

__all__ = [
    "get_logger",
    "EngineLogger",
    "ProcessRegistry",
    "get_process_registry",
]
