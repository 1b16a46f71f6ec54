"""
Ivy Bot
A minimal Discord bot on the Ivy engine, with version and update commands.

Entry point for the application.
"""

import discord

from ivy.commands import VersionCommand, UpdateCommand
from ivy.config import build_options
from ivy.data import InMemoryGuildDataProvider
from ivy.engine import IvyEngine
from ivy.startup import StartupChecker


class IvyBot(IvyEngine):
    """Bot exposing the engine's self-update workflow."""
    
    def register_commands(self) -> None:
        self.register_command("version", VersionCommand(self))
        self.register_command("update", UpdateCommand(self))
    
    def register_flows(self) -> None:
        pass
    
    def register_modules(self) -> None:
        pass
    
    async def on_ready(self, client: discord.Client) -> None:
        self.logger.info(self.opts.name, f"Logged in as {client.user}")


def create_bot() -> IvyBot:
    """Build the bot from the environment, validating it with the startup checks."""
    options = build_options(
        provider=InMemoryGuildDataProvider(),
        startup=StartupChecker(exit_on_critical=True)
    )
    return IvyBot(options)


if __name__ == "__main__":
    create_bot().run()
