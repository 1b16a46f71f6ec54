"""
Logging utilities for the Ivy engine.
"""

import logging
from typing import Optional


_logger: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    """Get the application logger, initializing if needed."""
    global _logger
    if _logger is None:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s | %(levelname)-8s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        _logger = logging.getLogger("ivy")
    return _logger


logger = get_logger()


class EngineLogger:
    """Tagged logger handed to the engine and its extensions.

    Every call takes a tag (usually the bot or module name) and a message,
    and is forwarded to the application logger as ``[tag] message``.
    """
    
    def __init__(self, base: Optional[logging.Logger] = None) -> None:
        self._base = base or logger
    
    def log(self, level: str, tag: str, message: str) -> None:
        """Log a tagged message at the given level name."""
        getattr(self._base, level.lower(), self._base.info)(f"[{tag}] {message}")
    
    def debug(self, tag: str, message: str) -> None:
        self.log("DEBUG", tag, message)
    
    def info(self, tag: str, message: str) -> None:
        self.log("INFO", tag, message)
    
    def warning(self, tag: str, message: str) -> None:
        self.log("WARNING", tag, message)
    
    def error(self, tag: str, message: str) -> None:
        self.log("ERROR", tag, message)
