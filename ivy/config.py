"""
Configuration settings for the Ivy engine.

Process-wide values come from the environment (a ``.env`` file is loaded on
import) with optional overrides from ``config.yaml``. ``build_options``
turns them into the immutable ``EngineOptions`` record an engine is
constructed with.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Union

import discord
import yaml
from dotenv import load_dotenv

from .utils.logging import EngineLogger, logger

# Load environment variables (safe - just reads .env file)
load_dotenv()

_initialized = False

# Discord Configuration
DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN")
BOT_NAME = os.getenv("BOT_NAME", "ivy")
COMMAND_PREFIX = os.getenv("COMMAND_PREFIX", ".")

# Version control: "owner/name" of the GitHub repository this bot runs from
GIT_REPO = os.getenv("GIT_REPO")
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN")

# Unset means git calls wait forever
GIT_TIMEOUT_SECONDS = os.getenv("GIT_TIMEOUT_SECONDS")

# Comma-separated Discord ids
SUPER_PERMS = os.getenv("SUPER_PERMS", "")
REPORT_ERRORS = os.getenv("REPORT_ERRORS", "")

DEFAULT_COLOR = 0x009688
BRAND_COLOR = os.getenv("BRAND_COLOR", "")

DEFAULT_PRESENCE_STATUS = "online"
DEFAULT_PRESENCE_ACTIVITY = "with the ivy platform."
DEFAULT_PRESENCE_TYPE = "playing"

# Project Paths
BASE_DIR = Path(__file__).parent.parent
CONFIG_YAML_PATH = BASE_DIR / "config.yaml"

# Settings loaded from config.yaml
YAML_SETTINGS: dict = {}


def init_config() -> None:
    """Initialize configuration by loading config.yaml.
    
    This function should be called once at application startup.
    It's safe to call multiple times.
    """
    global _initialized
    
    if _initialized:
        return
    
    if CONFIG_YAML_PATH.exists():
        try:
            with open(CONFIG_YAML_PATH, 'r', encoding='utf-8') as f:
                YAML_SETTINGS.update(yaml.safe_load(f) or {})
        except (OSError, yaml.YAMLError):
            pass  # Fall back to environment-only configuration
    
    _initialized = True


def is_initialized() -> bool:
    """Check if configuration has been initialized."""
    return _initialized


def parse_id_list(value: Union[str, Iterable[Any], None]) -> FrozenSet[str]:
    """Parse a comma-separated string (or iterable) of ids into a frozenset of strings."""
    if not value:
        return frozenset()
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = value
    return frozenset(str(item).strip() for item in items if str(item).strip())


def parse_color(value: Union[str, int, None], default: int = DEFAULT_COLOR) -> int:
    """Parse a hex colour such as ``#009688`` or ``0x009688``.
    
    Malformed values fall back to ``default``.
    """
    if isinstance(value, int):
        return value
    if not value:
        return default
    text = value.strip().lower().lstrip("#")
    if text.startswith("0x"):
        text = text[2:]
    try:
        return int(text, 16)
    except ValueError:
        return default


def parse_timeout(value: Optional[str]) -> Optional[float]:
    """Parse the git timeout; empty, malformed or non-positive values mean no timeout."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds > 0 else None


@dataclass(frozen=True)
class PresenceData:
    """Presence shown by the bot once connected."""
    status: str = DEFAULT_PRESENCE_STATUS
    activity_name: Optional[str] = DEFAULT_PRESENCE_ACTIVITY
    activity_type: str = DEFAULT_PRESENCE_TYPE

    def __post_init__(self) -> None:
        # Unknown values fall back to the defaults
        try:
            discord.Status(self.status)
        except ValueError:
            logger.warning(f"Unknown presence status {self.status!r}, using '{DEFAULT_PRESENCE_STATUS}'")
            object.__setattr__(self, "status", DEFAULT_PRESENCE_STATUS)
        if not isinstance(getattr(discord.ActivityType, str(self.activity_type), None), discord.ActivityType):
            logger.warning(f"Unknown presence activity type {self.activity_type!r}, using '{DEFAULT_PRESENCE_TYPE}'")
            object.__setattr__(self, "activity_type", DEFAULT_PRESENCE_TYPE)

    def as_kwargs(self) -> Dict[str, Any]:
        """Build keyword arguments for ``Client.change_presence``."""
        activity = None
        if self.activity_name:
            activity = discord.Activity(
                type=getattr(discord.ActivityType, self.activity_type),
                name=self.activity_name
            )
        return {
            "status": discord.Status(self.status),
            "activity": activity,
        }


@dataclass(frozen=True)
class EngineOptions:
    """Immutable engine configuration, held for the lifetime of the process."""
    token: Optional[str]
    name: str
    logger: EngineLogger = field(default_factory=EngineLogger)
    git_repo: Optional[str] = None
    super_perms: FrozenSet[str] = frozenset()
    report_errors: FrozenSet[str] = frozenset()
    color: int = DEFAULT_COLOR
    provider: Any = None
    startup: Any = None
    event_handler: Optional[Callable[[Any], Any]] = None
    presence: Optional[PresenceData] = None
    discord: Optional[Mapping[str, Any]] = None
    command_prefix: str = "."
    git_timeout: Optional[float] = None
    git_cwd: Optional[Path] = None
    
    def __post_init__(self) -> None:
        object.__setattr__(self, "super_perms", parse_id_list(self.super_perms))
        object.__setattr__(self, "report_errors", parse_id_list(self.report_errors))
        if self.discord is not None:
            object.__setattr__(self, "discord", MappingProxyType(dict(self.discord)))


def _presence_from_yaml() -> Optional[PresenceData]:
    settings = YAML_SETTINGS.get("presence")
    if not isinstance(settings, dict):
        return None
    return PresenceData(
        status=settings.get("status", DEFAULT_PRESENCE_STATUS),
        activity_name=settings.get("activity", DEFAULT_PRESENCE_ACTIVITY),
        activity_type=settings.get("type", DEFAULT_PRESENCE_TYPE),
    )


def build_options(**overrides: Any) -> EngineOptions:
    """Compose engine options from the environment, config.yaml and explicit overrides.
    
    Args:
        **overrides: Any ``EngineOptions`` field; wins over configured values.
        
    Returns:
        The frozen ``EngineOptions``.
    """
    init_config()
    
    super_perms = parse_id_list(SUPER_PERMS) | parse_id_list(YAML_SETTINGS.get("superusers"))
    values: Dict[str, Any] = {
        "token": DISCORD_BOT_TOKEN,
        "name": BOT_NAME,
        "git_repo": GIT_REPO,
        "super_perms": super_perms,
        "report_errors": parse_id_list(REPORT_ERRORS),
        "color": parse_color(BRAND_COLOR),
        "presence": _presence_from_yaml(),
        "command_prefix": COMMAND_PREFIX,
        "git_timeout": parse_timeout(GIT_TIMEOUT_SECONDS),
    }
    values.update(overrides)
    return EngineOptions(**values)
