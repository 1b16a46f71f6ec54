"""
Tests for process registry module.

The registry records git commands spawned by version control so they can
be named and terminated on shutdown.
"""

import asyncio
import pytest
from unittest.mock import MagicMock, AsyncMock, patch

from ivy.utils.process_registry import ProcessRegistry, get_process_registry, terminate


def make_git_process(pid, returncode=None, wait=None, kill=None):
    process = MagicMock()
    process.pid = pid
    process.returncode = returncode
    process.kill = kill or MagicMock()
    process.wait = wait or AsyncMock()
    return process


class TestTerminate:
    """Tests for killing a single git process."""

    @pytest.mark.asyncio
    async def test_running_process_is_killed_and_awaited(self):
        process = make_git_process(100)

        assert await terminate(process, "git pull") is True

        process.kill.assert_called_once()
        process.wait.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_finished_process_is_left_alone(self):
        process = make_git_process(100, returncode=0)

        assert await terminate(process, "git pull") is True

        process.kill.assert_not_called()

    @pytest.mark.asyncio
    async def test_process_that_already_exited(self):
        process = make_git_process(100, kill=MagicMock(side_effect=ProcessLookupError("gone")))

        assert await terminate(process, "git pull") is True

        process.wait.assert_not_called()

    @pytest.mark.asyncio
    async def test_stuck_process_is_reported(self):
        process = make_git_process(100, wait=AsyncMock(side_effect=asyncio.TimeoutError()))

        with patch("ivy.utils.process_registry.logger") as mock_logger:
            assert await terminate(process, "git pull", grace=0.01) is False

        assert "'git pull'" in mock_logger.warning.call_args.args[0]


class TestProcessRegistry:
    """Tests for ProcessRegistry tracking and termination."""

    @pytest.mark.asyncio
    async def test_register_records_command(self):
        registry = ProcessRegistry()
        fetch = make_git_process(100)
        pull = make_git_process(101)

        await registry.register(fetch, "git ls-remote origin refs/heads/main")
        await registry.register(pull, "git pull")
        assert registry._commands == {
            fetch: "git ls-remote origin refs/heads/main",
            pull: "git pull",
        }

        await registry.unregister(fetch)
        await registry.unregister(make_git_process(999))  # unknown process is ignored
        assert registry._commands == {pull: "git pull"}

    @pytest.mark.asyncio
    async def test_kill_all_names_unfinished_commands(self):
        registry = ProcessRegistry()
        running = make_git_process(100)
        finished = make_git_process(101, returncode=0)
        await registry.register(running, "git pull")
        await registry.register(finished, "git rev-parse HEAD")

        with patch("ivy.utils.process_registry.logger") as mock_logger:
            await registry.kill_all()

        running.kill.assert_called_once()
        finished.kill.assert_not_called()
        message = mock_logger.info.call_args.args[0]
        assert "'git pull'" in message
        assert "rev-parse" not in message
        assert registry._commands == {}

    @pytest.mark.asyncio
    async def test_kill_all_tolerates_stuck_and_vanished_processes(self):
        registry = ProcessRegistry()
        stuck = make_git_process(100, wait=AsyncMock(side_effect=asyncio.TimeoutError()))
        vanished = make_git_process(101, kill=MagicMock(side_effect=ProcessLookupError("gone")))
        await registry.register(stuck, "git pull")
        await registry.register(vanished, "git rev-parse HEAD")

        await registry.kill_all()

        stuck.kill.assert_called_once()
        assert registry._commands == {}

    @pytest.mark.asyncio
    async def test_kill_all_empty(self):
        registry = ProcessRegistry()
        with patch("ivy.utils.process_registry.logger") as mock_logger:
            await registry.kill_all()
        mock_logger.info.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_access(self):
        registry = ProcessRegistry()

        async def track(pid: int):
            process = make_git_process(pid)
            await registry.register(process, f"git status {pid}")
            await asyncio.sleep(0.01)
            await registry.unregister(process)

        await asyncio.gather(*(track(i) for i in range(10)))

        assert registry._commands == {}


class TestGetProcessRegistry:
    """Tests for get_process_registry singleton function."""

    def test_singleton_behavior(self):
        import ivy.utils.process_registry as pr_module
        pr_module._process_registry = None

        registry1 = get_process_registry()
        assert isinstance(registry1, ProcessRegistry)
        assert get_process_registry() is registry1
