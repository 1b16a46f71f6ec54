"""
Registry of git commands that are still running.

Every git invocation made by the version control layer is recorded here with
the command it is running, so that a shutdown can name and terminate the
commands that never returned.
"""

import asyncio
from typing import Dict, Optional
from .logging import logger

# Seconds a killed git process gets to exit before it is given up on
KILL_GRACE_SECONDS = 5.0


async def terminate(process: asyncio.subprocess.Process, command: str, grace: float = KILL_GRACE_SECONDS) -> bool:
    """Kill a git process if it is still running and wait for it to exit.

    Args:
        process: The git subprocess.
        command: The git command line, for logging.
        grace: Seconds to wait for the process to exit after the kill.

    Returns:
        True if the process has exited, False if it outlived the grace period.
    """
    if process.returncode is not None:
        return True
    try:
        process.kill()
    except ProcessLookupError:
        return True
    try:
        await asyncio.wait_for(process.wait(), timeout=grace)
    except asyncio.TimeoutError:
        logger.warning(f"'{command}' (PID {process.pid}) did not exit {grace} seconds after kill")
        return False
    return True


class ProcessRegistry:
    """Tracks running git processes and the command each one runs."""

    def __init__(self) -> None:
        self._commands: Dict[asyncio.subprocess.Process, str] = {}
        self._lock = asyncio.Lock()

    async def register(self, process: asyncio.subprocess.Process, command: str) -> None:
        async with self._lock:
            self._commands[process] = command
            logger.debug(f"Running '{command}' as PID {process.pid}")

    async def unregister(self, process: asyncio.subprocess.Process) -> None:
        async with self._lock:
            command = self._commands.pop(process, None)
            if command is not None:
                logger.debug(f"'{command}' (PID {process.pid}) finished")

    async def kill_all(self) -> None:
        """Terminate every git command that is still running."""
        async with self._lock:
            pending = {p: c for p, c in self._commands.items() if p.returncode is None}
            self._commands.clear()

        if not pending:
            return

        logger.info(f"Terminating {len(pending)} unfinished git command(s): "
                    + ", ".join(f"'{c}'" for c in pending.values()))

        await asyncio.gather(*(terminate(p, c) for p, c in pending.items()))


_process_registry: Optional[ProcessRegistry] = None


def get_process_registry() -> ProcessRegistry:
    """Get or create the global process registry."""
    global _process_registry
    if _process_registry is None:
        _process_registry = ProcessRegistry()
    return _process_registry
