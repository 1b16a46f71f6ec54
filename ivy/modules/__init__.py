"""
Engine modules.
"""

from .module import Module, EventManager, ModuleManager
from .events import DefaultEventManager

__all__ = [
    "Module",
    "EventManager",
    "ModuleManager",
    "DefaultEventManager",
]
