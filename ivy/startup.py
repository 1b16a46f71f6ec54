"""
Startup checks, run as the engine's startup hook.

This module validates, before any module is initialized:
- Discord bot token
- Git availability
- Repository identifier used for self-updates
- GitHub repository reachability
- Superuser configuration
"""

import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from .config import GITHUB_TOKEN
from .utils.logging import logger
from .vcs import is_valid_repo

if TYPE_CHECKING:
    from .engine import IvyEngine


class CheckStatus(Enum):
    """Status of a startup check."""
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"
    SKIP = "SKIP"


@dataclass
class CheckResult:
    """Result of a single startup check."""
    name: str
    status: CheckStatus
    message: str
    details: Optional[str] = None


CRITICAL_CHECKS = ["Discord Bot Token"]


class StartupChecker:
    """Performs startup checks against an engine's configuration."""

    def __init__(self, exit_on_critical: bool = True, github_token: Optional[str] = None):
        """Initialize the startup checker.

        Args:
            exit_on_critical: Raise SystemExit from ``run`` when a critical check fails.
            github_token: Token for the GitHub repository check. Defaults to config value.
        """
        self.exit_on_critical = exit_on_critical
        self.github_token = github_token or GITHUB_TOKEN
        self.results: List[CheckResult] = []

    def run(self, engine: "IvyEngine") -> None:
        """Startup hook entry point."""
        self.run_all_checks(engine)

        if self.exit_on_critical and self.has_critical_failures():
            failure_names = [f.name for f in self.get_failures()]
            raise SystemExit(
                f"Critical startup checks failed: {', '.join(failure_names)}. "
                "Please fix these issues before starting the bot."
            )

    def _add_result(
        self,
        name: str,
        status: CheckStatus,
        message: str,
        details: Optional[str] = None
    ) -> CheckResult:
        result = CheckResult(name=name, status=status, message=message, details=details)
        self.results.append(result)
        return result

    def check_discord_token(self, engine: "IvyEngine") -> CheckResult:
        """Check if the Discord bot token is configured."""
        token = engine.opts.token
        if not token:
            return self._add_result(
                name="Discord Bot Token",
                status=CheckStatus.FAIL,
                message="DISCORD_BOT_TOKEN environment variable is not set",
                details="Set DISCORD_BOT_TOKEN in your .env file"
            )

        if len(token) < 50:
            return self._add_result(
                name="Discord Bot Token",
                status=CheckStatus.WARN,
                message="Discord token seems unusually short",
                details="Token may be invalid - verify in Discord Developer Portal"
            )

        return self._add_result(
            name="Discord Bot Token",
            status=CheckStatus.PASS,
            message="Discord bot token is configured"
        )

    def check_git(self, engine: "IvyEngine") -> CheckResult:
        """Check if Git is installed."""
        if not engine.vcs_enabled:
            return self._add_result(
                name="Git",
                status=CheckStatus.SKIP,
                message="Version control is disabled"
            )

        try:
            result = subprocess.run(
                ["git", "--version"],
                capture_output=True,
                text=True,
                timeout=10
            )

            if result.returncode != 0:
                return self._add_result(
                    name="Git",
                    status=CheckStatus.WARN,
                    message="Git is not installed or not in PATH",
                    details="Version queries will report 'unknown'"
                )

            git_version = result.stdout.strip() if result.stdout else "unknown"

            return self._add_result(
                name="Git",
                status=CheckStatus.PASS,
                message=git_version
            )

        except FileNotFoundError:
            return self._add_result(
                name="Git",
                status=CheckStatus.WARN,
                message="Git not found in PATH",
                details="Install Git from https://git-scm.com/"
            )
        except subprocess.TimeoutExpired:
            return self._add_result(
                name="Git",
                status=CheckStatus.WARN,
                message="Timeout checking Git"
            )

    def check_repository(self, engine: "IvyEngine") -> CheckResult:
        """Check the repository identifier used for self-updates."""
        repo = engine.opts.git_repo
        if not repo:
            return self._add_result(
                name="Repository",
                status=CheckStatus.SKIP,
                message="GIT_REPO is not set",
                details="Set GIT_REPO=owner/name to enable self-updates"
            )

        if not is_valid_repo(repo):
            return self._add_result(
                name="Repository",
                status=CheckStatus.WARN,
                message=f"GIT_REPO '{repo}' is not of the form owner/name",
                details="Version control has been disabled"
            )

        return self._add_result(
            name="Repository",
            status=CheckStatus.PASS,
            message=repo
        )

    def check_github_repository(self, engine: "IvyEngine") -> CheckResult:
        """Check that the configured repository exists on GitHub."""
        repo = engine.opts.git_repo
        if not engine.vcs_enabled or not self.github_token:
            return self._add_result(
                name="GitHub Repository",
                status=CheckStatus.SKIP,
                message="GitHub repository check skipped",
                details="Requires a valid GIT_REPO and GITHUB_TOKEN"
            )

        try:
            from github import Github, GithubException

            gh = Github(self.github_token)
            remote = gh.get_repo(repo)
            return self._add_result(
                name="GitHub Repository",
                status=CheckStatus.PASS,
                message=f"Found '{remote.full_name}' (default branch: {remote.default_branch})"
            )
        except GithubException as e:
            return self._add_result(
                name="GitHub Repository",
                status=CheckStatus.WARN,
                message=f"GitHub API error: {e.data.get('message', str(e)) if isinstance(e.data, dict) else str(e)}",
                details="Upstream version checks may report 'unknown'"
            )

    def check_superusers(self, engine: "IvyEngine") -> CheckResult:
        """Check whether any superusers are configured."""
        count = len(engine.opts.super_perms)
        if not count:
            return self._add_result(
                name="Superusers",
                status=CheckStatus.WARN,
                message="No superusers configured",
                details="Set SUPER_PERMS to a comma-separated list of user ids"
            )

        return self._add_result(
            name="Superusers",
            status=CheckStatus.PASS,
            message=f"{count} superuser(s) configured"
        )

    def run_all_checks(self, engine: "IvyEngine") -> List[CheckResult]:
        """Run all startup checks and return results."""
        self.results = []

        logger.info("=" * 60)
        logger.info("STARTUP CHECKS")
        logger.info("=" * 60)

        checks = [
            ("Discord Bot Token", self.check_discord_token),
            ("Git", self.check_git),
            ("Repository", self.check_repository),
            ("GitHub Repository", self.check_github_repository),
            ("Superusers", self.check_superusers),
        ]

        for name, check_func in checks:
            try:
                result = check_func(engine)
            except Exception as e:
                result = self._add_result(
                    name=name,
                    status=CheckStatus.FAIL,
                    message=f"Check failed with error: {type(e).__name__}: {e}"
                )
            self._log_result(result)

        logger.info("-" * 60)
        passed = sum(1 for r in self.results if r.status == CheckStatus.PASS)
        warned = sum(1 for r in self.results if r.status == CheckStatus.WARN)
        failed = sum(1 for r in self.results if r.status == CheckStatus.FAIL)
        skipped = sum(1 for r in self.results if r.status == CheckStatus.SKIP)

        summary = f"Results: {passed} passed"
        if warned:
            summary += f", {warned} warnings"
        if failed:
            summary += f", {failed} failed"
        if skipped:
            summary += f", {skipped} skipped"

        logger.info(summary)
        logger.info("=" * 60)

        return self.results

    def _log_result(self, result: CheckResult) -> None:
        """Log a check result with appropriate formatting."""
        status_icons = {
            CheckStatus.PASS: "✓",
            CheckStatus.WARN: "⚠",
            CheckStatus.FAIL: "✗",
            CheckStatus.SKIP: "○",
        }

        icon = status_icons.get(result.status, "?")
        log_msg = f"[{icon}] {result.name}: {result.message}"

        if result.status == CheckStatus.PASS:
            logger.info(log_msg)
        elif result.status == CheckStatus.WARN:
            logger.warning(log_msg)
            if result.details:
                logger.warning(f"    └─ {result.details}")
        elif result.status == CheckStatus.FAIL:
            logger.error(log_msg)
            if result.details:
                logger.error(f"    └─ {result.details}")
        else:  # SKIP
            logger.info(log_msg)
            if result.details:
                logger.info(f"    └─ {result.details}")

    def has_critical_failures(self) -> bool:
        """Check if any critical checks failed."""
        return any(
            result.name in CRITICAL_CHECKS and result.status == CheckStatus.FAIL
            for result in self.results
        )

    def get_failures(self) -> List[CheckResult]:
        return [r for r in self.results if r.status == CheckStatus.FAIL]

    def get_warnings(self) -> List[CheckResult]:
        return [r for r in self.results if r.status == CheckStatus.WARN]


def run_startup_checks(engine: "IvyEngine", exit_on_critical: bool = True) -> StartupChecker:
    """Run all startup checks against an engine and optionally exit on critical failures.

    Raises:
        SystemExit: If exit_on_critical is True and critical checks fail.
    """
    checker = StartupChecker(exit_on_critical=exit_on_critical)
    checker.run(engine)
    return checker
