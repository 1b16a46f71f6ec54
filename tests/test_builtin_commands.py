"""
Tests for the opt-in version and update commands.
"""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from ivy.commands.builtin import UpdateCommand, VersionCommand
from ivy.config import EngineOptions
from ivy.vcs import FAILURE, VersionControl, VersionStatus


def make_engine(git_repo="acme/bot"):
    engine = MagicMock()
    engine.opts = EngineOptions(token="t", name="test", git_repo=git_repo)
    engine.vcs = VersionControl(git_repo)
    engine.vcs_enabled = engine.vcs.enabled
    return engine


def make_message():
    message = MagicMock()
    message.reply = AsyncMock()
    return message


class TestVersionCommand:
    """Tests for the version command."""
    
    @pytest.mark.asyncio
    async def test_reports_status(self):
        engine = make_engine()
        engine.vcs.status = AsyncMock(return_value=VersionStatus(channel="main", current="1234567", upstream="abcdef1"))
        message = make_message()
        
        assert await VersionCommand(engine).execute(MagicMock(), message, []) is True
        
        description = message.reply.call_args.kwargs["embed"].description
        assert "main" in description
        assert "1234567" in description
        assert "abcdef1" in description
    
    @pytest.mark.asyncio
    async def test_vcs_disabled(self):
        message = make_message()
        
        await VersionCommand(make_engine(git_repo=None)).execute(MagicMock(), message, [])
        
        assert "not configured" in message.reply.call_args.kwargs["embed"].description


class TestUpdateCommand:
    """Tests for the update command."""
    
    def test_requires_administrator_by_default(self):
        assert UpdateCommand(make_engine()).permission == discord.Permissions.administrator.flag
    
    @pytest.mark.asyncio
    async def test_reports_new_version(self):
        engine = make_engine()
        
        async def update(callback):
            await callback("abcdef1")
            return "abcdef1"
        
        engine.update = AsyncMock(side_effect=update)
        message = make_message()
        
        await UpdateCommand(engine).execute(MagicMock(), message, [])
        
        assert message.reply.await_count == 2
        assert "abcdef1" in message.reply.call_args.kwargs["embed"].description
    
    @pytest.mark.asyncio
    async def test_reports_failure(self):
        engine = make_engine()
        
        async def update(callback):
            await callback(FAILURE)
            return FAILURE
        
        engine.update = AsyncMock(side_effect=update)
        message = make_message()
        
        await UpdateCommand(engine).execute(MagicMock(), message, [])
        
        assert "failed" in message.reply.call_args.kwargs["embed"].description
    
    @pytest.mark.asyncio
    async def test_vcs_disabled(self):
        engine = make_engine(git_repo=None)
        engine.update = AsyncMock()
        message = make_message()
        
        await UpdateCommand(engine).execute(MagicMock(), message, [])
        
        engine.update.assert_not_called()
