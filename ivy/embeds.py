"""
Embed helpers for messages sent by the engine and its commands.
"""

from enum import Enum
from typing import Optional

import discord


class IvyEmbedIcons(str, Enum):
    """Icon URLs used as embed authors."""
    AUDIO = 'https://storage.googleapis.com/stonks-cdn/audio.png'
    BIRTHDAY = 'https://storage.googleapis.com/stonks-cdn/birthday.png'
    EDU = 'https://storage.googleapis.com/stonks-cdn/univ.png'
    ERROR = 'https://storage.googleapis.com/stonks-cdn/error.png'
    HELP = 'https://storage.googleapis.com/stonks-cdn/help.png'
    MEMBER = 'https://storage.googleapis.com/stonks-cdn/jack.png'
    MESSAGE = 'https://storage.googleapis.com/stonks-cdn/message.png'
    NUMBERS = 'https://storage.googleapis.com/stonks-cdn/counther.png'
    POLL = 'https://storage.googleapis.com/stonks-cdn/poll.png'
    PREFS = 'https://storage.googleapis.com/stonks-cdn/prefs.png'
    STONKS = 'https://storage.googleapis.com/stonks-cdn/stonks.png'
    TEST = 'https://storage.googleapis.com/stonks-cdn/test.png'
    XP = 'https://storage.googleapis.com/stonks-cdn/xp.png'


class MessageTemplates:
    """Text of the messages the engine sends itself."""
    
    NO_PERMISSION = "You don't have permission to use `{prefix}{command}`."
    COMMAND_ERROR = "Something went wrong while running `{prefix}{command}`."
    COMMAND_USAGE = "Usage: `{prefix}{help}`"
    ERROR_REPORT = (
        "Command `{command}` failed for {user} in {guild}:\n"
        "```\n{error}\n```"
    )
    VERSION_INFO = (
        "Release channel: `{channel}`\n"
        "Current version: `{current}`\n"
        "Upstream version: `{upstream}`"
    )
    UPDATE_STARTED = "Checking for updates..."
    UPDATE_FAILED = "Update failed, see the logs for details."
    UPDATE_COMPLETE = "Now running version `{version}`."
    VCS_DISABLED = "Version control is not configured for this bot."


def build_embed(
    title: str,
    description: str,
    color: int,
    icon: Optional[IvyEmbedIcons] = None
) -> discord.Embed:
    """Build an embed in the bot's branding colour."""
    embed = discord.Embed(description=description, color=color)
    if icon is not None:
        embed.set_author(name=title, icon_url=icon.value)
    else:
        embed.title = title
    return embed
