"""
Commands and test flows for Ivy bots.
"""

from .command import Command, CommandManager, TestCommand, GenericTestCommand
from .builtin import VersionCommand, UpdateCommand

__all__ = [
    "Command",
    "CommandManager",
    "TestCommand",
    "GenericTestCommand",
    "VersionCommand",
    "UpdateCommand",
]
