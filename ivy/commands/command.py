"""
Commands, test flows and the command registry.
"""

from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

import discord

from ..modules.module import Module
from ..utils.logging import logger

if TYPE_CHECKING:
    from ..engine import IvyEngine


T = TypeVar("T", bound=Module)


class Command(ABC):
    """A named, invokable unit of bot functionality."""
    
    def __init__(
        self,
        name: str,
        help: str = "",
        help_title: str = "",
        permission: Optional[int] = None,
        delete_message: bool = False
    ) -> None:
        """Initialize the command.
        
        Args:
            name: Name the command is invoked by.
            help: Usage text shown to users.
            help_title: Short title for the usage text.
            permission: Discord permission bitfield required to run it, or None.
            delete_message: Whether the invoking message is deleted afterwards.
        """
        self.name = name
        self.help = help
        self.help_title = help_title or name
        self.permission = permission
        self.delete_message = delete_message
    
    @abstractmethod
    async def execute(self, user: discord.abc.User, message: discord.Message, args: Sequence[str]) -> bool:
        """Run the command. Returns False when it was used incorrectly."""


class TestCommand(ABC):
    """A test/demonstration flow."""
    __test__ = False
    
    def __init__(self, name: str) -> None:
        self.name = name
    
    @abstractmethod
    async def run(self, engine: "IvyEngine", message: discord.Message) -> None:
        ...


class GenericTestCommand(ABC, Generic[T]):
    """A test flow bound to the module that manages it."""
    __test__ = False
    
    def __init__(self, name: str) -> None:
        self.name = name
    
    @abstractmethod
    async def run(self, engine: "IvyEngine", message: discord.Message, module: T) -> None:
        ...


Flow = Tuple[object, Optional[Module]]


class CommandManager:
    """Registry of commands and test flows."""
    
    def __init__(self, engine: "IvyEngine") -> None:
        self.engine = engine
        self._commands: Dict[str, Command] = {}
        self._flows: List[Flow] = []
    
    def register_command(self, name: str, command: Command) -> None:
        """Register a command under a name; the last registration wins."""
        if name in self._commands:
            logger.debug(f"Command '{name}' re-registered, replacing previous instance")
        self._commands[name] = command
    
    def get_command(self, name: str) -> Optional[Command]:
        return self._commands.get(name)
    
    @property
    def commands(self) -> Mapping[str, Command]:
        """Read-only view of the registered commands."""
        return MappingProxyType(self._commands)
    
    def register_test_flow(self, flow: TestCommand) -> None:
        self._flows.append((flow, None))
    
    def register_generic_test_flow(self, flow: GenericTestCommand[T], module: T) -> None:
        self._flows.append((flow, module))
    
    @property
    def flows(self) -> Tuple[Flow, ...]:
        return tuple(self._flows)
    
    def get_flow(self, name: str) -> Optional[Flow]:
        """Return the most recently registered flow with this name, with its managing module."""
        for flow, module in reversed(self._flows):
            if flow.name == name:
                return flow, module
        return None
    
    async def run_flow(self, name: str, message: discord.Message) -> None:
        """Run a flow by name.
        
        Raises:
            KeyError: If no flow is registered under the name.
        """
        entry = self.get_flow(name)
        if entry is None:
            raise KeyError(f"Unknown flow: {name}")
        
        flow, module = entry
        logger.info(f"Running flow '{name}'")
        if module is None:
            await flow.run(self.engine, message)
        else:
            await flow.run(self.engine, message, module)
