"""
Version control for self-updating bots.

This module wraps the ``git`` binary to:
- Report the current commit and release channel (branch) of the checkout
- Query the upstream commit of the release channel
- Pull the latest version when the checkout is behind

Every public operation is fail-soft: a missing binary, a non-zero exit or
unexpected output yields ``UNKNOWN`` (queries) or ``FAILURE`` (updates)
instead of an exception.
"""

import asyncio
import inspect
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from .utils.logging import logger
from .utils.process_registry import get_process_registry, terminate


UNKNOWN = "unknown"
FAILURE = "Failure"

HASH_PATTERN = re.compile(r"[0-9a-f]{5,40}")
GIT_REPO_PATTERN = re.compile(r"[\w.-]+/[\w.-]+")

VERSION_LENGTH = 7
DEFAULT_REMOTE_TEMPLATE = "git@github.com:{repo}.git"

UpdateCallback = Callable[[str], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class GitResult:
    """Outcome of a single git invocation."""
    ok: bool
    output: str
    returncode: Optional[int] = None

    @classmethod
    def success(cls, output: str, returncode: int = 0) -> "GitResult":
        return cls(ok=True, output=output, returncode=returncode)

    @classmethod
    def failure(cls, output: str, returncode: Optional[int] = None) -> "GitResult":
        return cls(ok=False, output=output, returncode=returncode)


@dataclass(frozen=True)
class VersionStatus:
    """Point-in-time view of the local and upstream versions."""
    channel: str
    current: str
    upstream: str

    @property
    def available(self) -> bool:
        """Whether both versions could be determined."""
        return self.current != UNKNOWN and self.upstream != UNKNOWN

    @property
    def up_to_date(self) -> bool:
        return self.available and self.current.lower() == self.upstream.lower()


def is_valid_repo(repo: Optional[str]) -> bool:
    """Check whether a repository identifier has the ``owner/name`` shape."""
    return bool(repo) and GIT_REPO_PATTERN.fullmatch(repo) is not None


def to_version(output: str) -> str:
    """Shorten a commit hash to a version, or ``UNKNOWN`` if it is not a hash."""
    if not HASH_PATTERN.fullmatch(output) or len(output) < VERSION_LENGTH:
        return UNKNOWN
    return output[:VERSION_LENGTH]


class VersionControl:
    """Queries and updates the git checkout the bot runs from.

    Versions are never cached; each query spawns git again so the result
    reflects the checkout at call time.
    """

    def __init__(
        self,
        repo: Optional[str],
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
        remote_template: str = DEFAULT_REMOTE_TEMPLATE
    ) -> None:
        """Initialize version control for a repository.

        Args:
            repo: Repository identifier in ``owner/name`` form. Missing or
                malformed identifiers disable version control.
            cwd: Working directory of the checkout. Defaults to the process cwd.
            timeout: Seconds to wait for each git call. ``None`` waits forever.
            remote_template: Format string for the remote URL, given ``repo``.
        """
        self.repo = repo
        self.enabled = is_valid_repo(repo)
        self.cwd = cwd
        self.timeout = timeout
        self.remote_template = remote_template
        self._update_lock: Optional[asyncio.Lock] = None

        if repo and not self.enabled:
            logger.debug(f"Version control disabled: malformed repository identifier '{repo}'")

    @property
    def remote_url(self) -> str:
        return self.remote_template.format(repo=self.repo)

    @property
    def update_lock(self) -> asyncio.Lock:
        """Get or create the lock that keeps updates single-flight."""
        if self._update_lock is None:
            self._update_lock = asyncio.Lock()
        return self._update_lock

    async def exec_git(self, args: str) -> GitResult:
        """Run ``git`` with whitespace-split arguments.

        Args:
            args: Arguments to pass to ``git``, e.g. ``"rev-parse HEAD"``.

        Returns:
            A successful result with trimmed stdout, or a failed one with
            trimmed stderr (or a description of why git could not run).
        """
        cmd = ["git"] + args.split()

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.cwd) if self.cwd else None
            )
        except OSError as e:
            logger.warning(f"Unable to run git {args}: {e}")
            return GitResult.failure(str(e))

        process_registry = get_process_registry()
        await process_registry.register(process, " ".join(cmd))

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            await terminate(process, " ".join(cmd))
            logger.warning(f"git {args} timed out after {self.timeout} seconds")
            return GitResult.failure(f"timed out after {self.timeout} seconds")
        finally:
            await process_registry.unregister(process)

        out = stdout.decode('utf-8', errors='replace').strip()
        err = stderr.decode('utf-8', errors='replace').strip()

        if process.returncode != 0:
            logger.debug(f"git {args} exited with {process.returncode}: {err}")
            return GitResult.failure(err, process.returncode)

        return GitResult.success(out, process.returncode)

    async def get_current_version(self) -> str:
        """Return the short hash of the checked out commit."""
        if not self.enabled:
            return UNKNOWN

        res = await self.exec_git("rev-parse HEAD")
        if not res.ok:
            return UNKNOWN

        return to_version(res.output)

    async def get_release_channel(self) -> str:
        """Return the release channel, i.e. the checked out branch."""
        if not self.enabled:
            return UNKNOWN

        res = await self.exec_git("rev-parse --abbrev-ref HEAD")
        if not res.ok or not res.output or res.output.startswith("fatal"):
            return UNKNOWN

        return res.output

    async def get_upstream_version(self) -> str:
        """Return the short hash of the release channel's head on the remote."""
        if not self.enabled:
            return UNKNOWN

        channel = await self.get_release_channel()
        if channel == UNKNOWN:
            return UNKNOWN

        res = await self.exec_git(f"ls-remote {self.remote_url} refs/heads/{channel}")
        if not res.ok or not res.output:
            return UNKNOWN

        # ls-remote prints "<hash>\t<ref>" per matching ref
        first_line = res.output.splitlines()[0]
        return to_version(first_line.split()[0])

    async def status(self) -> VersionStatus:
        """Collect the release channel, local version and upstream version."""
        return VersionStatus(
            channel=await self.get_release_channel(),
            current=await self.get_current_version(),
            upstream=await self.get_upstream_version()
        )

    async def update(self, on_complete: Optional[UpdateCallback] = None) -> str:
        """Pull the latest version of the release channel.

        Concurrent calls are serialised; a call that waited on another
        update sees the pulled state and reports it without pulling again.

        Args:
            on_complete: Optional callable (sync or async) receiving the new
                version, or ``FAILURE``.

        Returns:
            The same value handed to ``on_complete``.
        """
        if not self.enabled:
            return await _notify(on_complete, FAILURE)

        async with self.update_lock:
            local = await self.get_current_version()
            remote = await self.get_upstream_version()
            if local.lower() == remote.lower():
                logger.info(f"Already up to date at {local}")
                return await _notify(on_complete, local)

            logger.info(f"Updating from {local} to {remote}...")
            res = await self.exec_git("pull")
            if not res.ok:
                logger.error(f"git pull failed: {res.output}")
                return await _notify(on_complete, FAILURE)

            version = await self.get_current_version()
            logger.info(f"Updated to {version}")
            return await _notify(on_complete, version)


async def _notify(callback: Optional[UpdateCallback], value: str) -> str:
    if callback is not None:
        result = callback(value)
        if inspect.isawaitable(result):
            await result
    return value
