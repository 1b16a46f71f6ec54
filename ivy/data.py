"""
Guild data provider interface.

Storage of per-guild configuration is owned by the concrete bot; the engine
only carries the provider so modules and commands can reach it.
"""

from abc import ABC, abstractmethod
from typing import Dict, Generic, Optional, Protocol, TypeVar


class GuildTokenLike(Protocol):
    """Anything describing one guild's stored configuration."""
    guild_id: str


T = TypeVar("T", bound=GuildTokenLike)


class GuildDataProvider(ABC, Generic[T]):
    """Loads and stores per-guild data."""
    
    @abstractmethod
    async def load(self, guild_id: str) -> Optional[T]:
        ...
    
    @abstractmethod
    async def save(self, token: T) -> None:
        ...
    
    @abstractmethod
    async def delete(self, guild_id: str) -> bool:
        ...


class InMemoryGuildDataProvider(GuildDataProvider[T]):
    """Provider that keeps guild data for the lifetime of the process only."""
    
    def __init__(self) -> None:
        self._tokens: Dict[str, T] = {}
    
    async def load(self, guild_id: str) -> Optional[T]:
        return self._tokens.get(str(guild_id))
    
    async def save(self, token: T) -> None:
        self._tokens[str(token.guild_id)] = token
    
    async def delete(self, guild_id: str) -> bool:
        return self._tokens.pop(str(guild_id), None) is not None
