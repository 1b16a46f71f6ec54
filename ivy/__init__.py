"""
Ivy: bootstrap, registries, permissions and self-updates for Discord bots.
"""

from .config import EngineOptions, PresenceData, build_options
from .engine import IvyEngine
from .vcs import FAILURE, UNKNOWN, VersionControl

__all__ = [
    "EngineOptions",
    "PresenceData",
    "build_options",
    "IvyEngine",
    "VersionControl",
    "UNKNOWN",
    "FAILURE",
]
