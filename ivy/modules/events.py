"""
Default Discord event handling: prefix command dispatch.
"""

import traceback
from typing import TYPE_CHECKING

import discord

from ..embeds import IvyEmbedIcons, MessageTemplates, build_embed
from ..utils.logging import logger
from .module import EventManager

if TYPE_CHECKING:
    from ..engine import IvyEngine


class DefaultEventManager(EventManager):
    """Dispatches prefixed messages to registered commands.

    Permission-gated commands are checked through ``engine.has``. Command
    errors are logged, answered with an error embed and forwarded to the
    configured error-report channels.
    """

    def __init__(self, engine: "IvyEngine") -> None:
        super().__init__(engine)

    def init(self) -> None:
        """Attach the message listener to the client."""
        @self.engine.client.event
        async def on_message(message: discord.Message) -> None:
            """Discord event handler for incoming messages."""
            await self.handle_message(message)

    async def handle_message(self, message: discord.Message) -> None:
        """Run the command a message invokes, if any."""
        if message.author.bot:
            return

        opts = self.engine.opts
        content = message.content or ""
        if not content.startswith(opts.command_prefix):
            return

        parts = content[len(opts.command_prefix):].split()
        if not parts:
            return

        name, args = parts[0], parts[1:]
        command = self.engine.command_manager.get_command(name)
        if command is None:
            return

        if command.permission is not None and not self.engine.has(message.author, command.permission, message.guild):
            await message.reply(embed=build_embed(
                title=opts.name,
                description=MessageTemplates.NO_PERMISSION.format(prefix=opts.command_prefix, command=name),
                color=opts.color,
                icon=IvyEmbedIcons.ERROR
            ))
            return

        try:
            ok = await command.execute(message.author, message, args)
            if ok is False:
                await message.reply(embed=build_embed(
                    title=command.help_title,
                    description=MessageTemplates.COMMAND_USAGE.format(prefix=opts.command_prefix, help=command.help),
                    color=opts.color,
                    icon=IvyEmbedIcons.HELP
                ))
        except Exception as e:
            self.engine.logger.error(opts.name, f"Command '{name}' failed: {type(e).__name__}: {e}")
            await message.reply(embed=build_embed(
                title=opts.name,
                description=MessageTemplates.COMMAND_ERROR.format(prefix=opts.command_prefix, command=name),
                color=opts.color,
                icon=IvyEmbedIcons.ERROR
            ))
            await self.report_error(name, message, traceback.format_exc())
        finally:
            if command.delete_message:
                try:
                    await message.delete()
                except discord.HTTPException as e:
                    logger.warning(f"Could not delete invoking message: {e}")

    async def report_error(self, command_name: str, message: discord.Message, error: str) -> None:
        """Forward a command failure to every error-report channel the client can see."""
        guild_name = message.guild.name if message.guild else "direct messages"
        report = MessageTemplates.ERROR_REPORT.format(
            command=command_name,
            user=message.author,
            guild=guild_name,
            error=error[-1500:]
        )

        for channel_id in self.engine.opts.report_errors:
            if not channel_id.isdigit():
                logger.warning(f"Ignoring malformed error-report channel id '{channel_id}'")
                continue
            channel = self.engine.client.get_channel(int(channel_id))
            if channel is None:
                logger.warning(f"Error-report channel {channel_id} not found")
                continue
            try:
                await channel.send(report)
            except discord.HTTPException as e:
                logger.warning(f"Failed to send error report to {channel_id}: {e}")
