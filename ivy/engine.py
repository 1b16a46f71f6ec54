"""
The Ivy engine: bootstrap and lifecycle of a Discord bot.

A concrete bot subclasses ``IvyEngine`` and implements the registration
hooks and ``on_ready``. Construction runs the whole bootstrap except the
Discord login, which is started with ``run()`` or ``await login()``.
"""

import asyncio
import signal
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import discord

from .commands.command import Command, CommandManager, GenericTestCommand, T, TestCommand
from .config import EngineOptions, PresenceData
from .modules.events import DefaultEventManager
from .modules.module import Module, ModuleManager
from .permissions import PermissionLike, PermissionResolver
from .utils.logging import logger
from .utils.process_registry import get_process_registry
from .vcs import UpdateCallback, VersionControl


def default_client_options() -> Dict[str, Any]:
    """Capability set used when no client overrides are configured."""
    intents = discord.Intents.default()
    intents.members = True  # Required for guild member permission lookups
    intents.message_content = True  # Required for prefix commands
    return {
        "intents": intents,
        "chunk_guilds_at_startup": True,
    }


class IvyEngine(ABC):
    """Base class for bots built on the Ivy engine."""

    def __init__(self, opts: EngineOptions) -> None:
        self.start_time = time.time()
        self.opts = opts
        self.logger = opts.logger
        self.provider = opts.provider

        self.vcs = VersionControl(opts.git_repo, cwd=opts.git_cwd, timeout=opts.git_timeout)

        self.client = self._create_client()

        self.module_manager = ModuleManager(self)
        self.command_manager = CommandManager(self)
        self.permissions = PermissionResolver(opts.super_perms)

        event_handler = opts.event_handler or DefaultEventManager
        self.module_manager.register_module(event_handler(self))

        self.register_commands()
        self.register_flows()
        self.register_modules()

        if opts.startup is not None:
            hook = getattr(opts.startup, "run", opts.startup)
            hook(self)

        self.module_manager.init()

        @self.client.event
        async def on_ready() -> None:
            """Discord event handler for when the bot is ready."""
            await self._handle_ready()

    def _create_client(self) -> discord.Client:
        options = dict(self.opts.discord) if self.opts.discord is not None else default_client_options()
        if "intents" not in options:
            options["intents"] = default_client_options()["intents"]
        return discord.Client(**options)

    async def _handle_ready(self) -> None:
        name = self.opts.name
        if self.vcs.enabled:
            channel = await self.get_release_channel()
            version = await self.get_current_version()
            self.logger.info(name, f"Release channel: {channel}, version: {version}")

        self.logger.info(name, "Successfully connected to Discord.")

        presence = self.opts.presence or PresenceData()
        await self.client.change_presence(**presence.as_kwargs())

        await self.on_ready(self.client)

    @abstractmethod
    def register_commands(self) -> None:
        ...

    @abstractmethod
    def register_modules(self) -> None:
        ...

    @abstractmethod
    def register_flows(self) -> None:
        ...

    @abstractmethod
    async def on_ready(self, client: discord.Client) -> None:
        """Called once connected, after presence has been set."""

    def register_command(self, name: str, command: Command) -> None:
        """Register a command.

        Args:
            name: The name of the command.
            command: The command instance.
        """
        self.command_manager.register_command(name, command)

    def register_module(self, module: Module) -> None:
        """Register a module; it is initialized with the rest after registration."""
        self.module_manager.register_module(module)

    def register_flow(self, flow: TestCommand) -> None:
        self.command_manager.register_test_flow(flow)

    def register_managed_flow(self, flow: GenericTestCommand[T], module: T) -> None:
        """Register a flow managed by a module.

        Args:
            flow: The managed flow to register.
            module: The manager for this flow.
        """
        self.command_manager.register_generic_test_flow(flow, module)

    def has(self, user: discord.abc.Snowflake, permission: PermissionLike, guild: Optional[discord.Guild]) -> bool:
        """Return whether a user has a bot permission in a guild.

        This does not necessarily mean the user has that permission in the
        guild: superusers always have every permission. Guild lookups only
        succeed once the client has connected.
        """
        return self.permissions.resolve(user, permission, guild)

    @property
    def vcs_enabled(self) -> bool:
        return self.vcs.enabled

    @property
    def uptime(self) -> float:
        """Seconds since the engine was constructed."""
        return time.time() - self.start_time

    async def get_current_version(self) -> str:
        return await self.vcs.get_current_version()

    async def get_upstream_version(self) -> str:
        return await self.vcs.get_upstream_version()

    async def get_release_channel(self) -> str:
        return await self.vcs.get_release_channel()

    async def update(self, on_complete: Optional[UpdateCallback] = None) -> str:
        """Pull the latest version; ``on_complete`` receives it or ``"Failure"``."""
        return await self.vcs.update(on_complete)

    def _require_token(self) -> str:
        if not self.opts.token:
            raise ValueError("DISCORD_BOT_TOKEN environment variable is required")
        return self.opts.token

    async def login(self) -> None:
        """Log in and connect to Discord, running until the client closes."""
        await self.client.start(self._require_token())

    def run(self) -> None:
        """Start the bot, blocking until it shuts down."""
        token = self._require_token()
        self.logger.info(self.opts.name, "Starting...")
        asyncio.run(self._serve(token))

    async def _serve(self, token: str) -> None:
        setup_signal_handlers(self)
        try:
            await self.client.start(token)
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Kill outstanding git processes and close the Discord connection."""
        logger.info("Cleaning up resources...")
        await get_process_registry().kill_all()
        if not self.client.is_closed():
            await self.client.close()
        logger.info("Cleanup complete")


async def _shutdown_on_signal(engine: IvyEngine, sig: int) -> None:
    logger.info(f"Received signal {sig}, initiating graceful shutdown...")
    await engine.shutdown()


def setup_signal_handlers(engine: IvyEngine, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
    """Shut the engine down on SIGINT or SIGTERM.

    Closing the client makes ``client.start`` return, so ``run`` exits once
    the shutdown has finished.
    """
    loop = loop or asyncio.get_running_loop()
    for sig in (signal.SIGINT, getattr(signal, "SIGTERM", None)):
        if sig is None:
            continue
        try:
            loop.add_signal_handler(sig, lambda s=sig: loop.create_task(_shutdown_on_signal(engine, s)))
        except NotImplementedError:
            # Event loops on Windows cannot install signal handlers
            logger.debug(f"Signal handler for {sig} not supported on this platform")
