"""
Permission resolution for bot commands.

A user holds a bot permission in a guild when Discord grants it to their
member there, or unconditionally when the user is a configured superuser.
"""

from typing import Callable, Iterable, Optional, Union

import discord

from .utils.logging import logger


PermissionLike = Union[int, discord.Permissions]
ScopedCheck = Callable[[discord.abc.Snowflake, PermissionLike, Optional[discord.Guild]], bool]


def discord_scoped_check(
    user: discord.abc.Snowflake,
    permission: PermissionLike,
    guild: Optional[discord.Guild]
) -> bool:
    """Check a permission against the user's member in the guild.

    The guild must be available, which in practice means the client has
    connected; a user that is not a member of the guild holds nothing.
    """
    if guild is None:
        return False
    member = guild.get_member(user.id)
    if member is None:
        return False
    required = permission if isinstance(permission, discord.Permissions) else discord.Permissions(permission)
    return member.guild_permissions.is_superset(required)


class PermissionResolver:
    """Combines superuser overrides with guild-scoped permission checks."""

    def __init__(
        self,
        superusers: Iterable[str],
        scoped_check: ScopedCheck = discord_scoped_check
    ) -> None:
        self.superusers = frozenset(str(user_id) for user_id in superusers)
        self._scoped_check = scoped_check

    def is_superuser(self, user: discord.abc.Snowflake) -> bool:
        return str(user.id) in self.superusers

    def resolve(
        self,
        user: discord.abc.Snowflake,
        permission: PermissionLike,
        guild: Optional[discord.Guild]
    ) -> bool:
        """Return whether the user holds the permission in the guild.

        Superusers are allowed before the guild is consulted at all.
        """
        if self.is_superuser(user):
            logger.debug(f"Superuser override for user {user.id}")
            return True
        return self._scoped_check(user, permission, guild)
