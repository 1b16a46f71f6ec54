"""
Opt-in commands for inspecting and updating the running version.

The engine registers no commands itself; a bot registers these from its
``register_commands`` hook if it wants them.
"""

from typing import TYPE_CHECKING, Sequence

import discord

from ..embeds import IvyEmbedIcons, MessageTemplates, build_embed
from ..vcs import FAILURE
from .command import Command

if TYPE_CHECKING:
    from ..engine import IvyEngine


class VersionCommand(Command):
    """Shows the release channel, local version and upstream version."""
    
    def __init__(self, engine: "IvyEngine") -> None:
        super().__init__(name="version", help="version", help_title="Version")
        self.engine = engine
    
    async def execute(self, user: discord.abc.User, message: discord.Message, args: Sequence[str]) -> bool:
        opts = self.engine.opts
        if not self.engine.vcs_enabled:
            description = MessageTemplates.VCS_DISABLED
        else:
            status = await self.engine.vcs.status()
            description = MessageTemplates.VERSION_INFO.format(
                channel=status.channel,
                current=status.current,
                upstream=status.upstream
            )
        
        await message.reply(embed=build_embed(opts.name, description, opts.color, IvyEmbedIcons.PREFS))
        return True


class UpdateCommand(Command):
    """Pulls the latest version of the release channel."""
    
    def __init__(self, engine: "IvyEngine", permission: int = discord.Permissions.administrator.flag) -> None:
        super().__init__(name="update", help="update", help_title="Update", permission=permission)
        self.engine = engine
    
    async def execute(self, user: discord.abc.User, message: discord.Message, args: Sequence[str]) -> bool:
        opts = self.engine.opts
        if not self.engine.vcs_enabled:
            await message.reply(embed=build_embed(opts.name, MessageTemplates.VCS_DISABLED, opts.color, IvyEmbedIcons.ERROR))
            return True
        
        await message.reply(embed=build_embed(opts.name, MessageTemplates.UPDATE_STARTED, opts.color, IvyEmbedIcons.PREFS))
        
        async def report(version: str) -> None:
            if version == FAILURE:
                description, icon = MessageTemplates.UPDATE_FAILED, IvyEmbedIcons.ERROR
            else:
                description, icon = MessageTemplates.UPDATE_COMPLETE.format(version=version), IvyEmbedIcons.PREFS
            self.engine.logger.info(opts.name, f"Update requested by {user}: {version}")
            await message.reply(embed=build_embed(opts.name, description, opts.color, icon))
        
        await self.engine.update(report)
        return True
