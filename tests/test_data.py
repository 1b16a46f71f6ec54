"""
Tests for the in-memory guild data provider.
"""

from dataclasses import dataclass

import pytest

from ivy.data import InMemoryGuildDataProvider


@dataclass
class GuildToken:
    guild_id: str
    prefix: str = "."


class TestInMemoryGuildDataProvider:
    """Tests for load, save and delete."""
    
    @pytest.mark.asyncio
    async def test_save_and_load(self):
        provider = InMemoryGuildDataProvider()
        token = GuildToken(guild_id="123", prefix="!")
        
        await provider.save(token)
        
        assert await provider.load("123") is token
        assert await provider.load(123) is token
        assert await provider.load("999") is None
    
    @pytest.mark.asyncio
    async def test_delete(self):
        provider = InMemoryGuildDataProvider()
        await provider.save(GuildToken(guild_id="123"))
        
        assert await provider.delete("123") is True
        assert await provider.delete("123") is False
        assert await provider.load("123") is None
