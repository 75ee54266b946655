"""Tests for the watch CLI command."""

import asyncio
import signal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from db_schema_sync.cli.commands.watch import run_watch
from db_schema_sync.cli.main import app
from db_schema_sync.errors import WatcherSetupError

runner = CliRunner()


async def run_until_signal(config, mock_service_cls):
    """Run run_watch, then fire the captured SIGINT handler."""
    with patch("asyncio.get_running_loop") as mock_loop:
        mock_loop_instance = MagicMock()
        mock_loop.return_value = mock_loop_instance

        signal_handlers = {}

        def capture_handler(sig, handler):
            signal_handlers[sig] = handler

        mock_loop_instance.add_signal_handler.side_effect = capture_handler

        with patch("db_schema_sync.cli.commands.watch.SchemaSyncService", mock_service_cls):
            task = asyncio.create_task(run_watch(config))
            await asyncio.sleep(0.01)
            signal_handlers[signal.SIGINT]()
            await task


class TestRunWatch:
    @pytest.mark.asyncio
    async def test_starts_and_disposes_service(self, config):
        mock_service = MagicMock()
        mock_service.start = AsyncMock()
        mock_service.dispose = AsyncMock()
        mock_service_cls = MagicMock(return_value=mock_service)

        await run_until_signal(config, mock_service_cls)

        mock_service.start.assert_awaited_once()
        mock_service.dispose.assert_awaited_once()
        assert mock_service_cls.call_args.kwargs["quiet"] is False

    @pytest.mark.asyncio
    async def test_subscribes_to_changes(self, config):
        mock_service = MagicMock()
        mock_service.start = AsyncMock()
        mock_service.dispose = AsyncMock()
        subscription = MagicMock()
        mock_service.on_change.subscribe.return_value = subscription

        await run_until_signal(config, MagicMock(return_value=mock_service))

        mock_service.on_change.subscribe.assert_called_once()
        subscription.dispose.assert_called_once()

    @pytest.mark.asyncio
    async def test_disposes_when_start_fails(self, config):
        mock_service = MagicMock()
        mock_service.start = AsyncMock(side_effect=WatcherSetupError("no root"))
        mock_service.dispose = AsyncMock()

        with (
            patch("asyncio.get_running_loop"),
            patch(
                "db_schema_sync.cli.commands.watch.SchemaSyncService",
                MagicMock(return_value=mock_service),
            ),
        ):
            with pytest.raises(WatcherSetupError):
                await run_watch(config)

        mock_service.dispose.assert_awaited_once()


def test_watch_command_setup_error(tmp_path):
    with patch("db_schema_sync.cli.commands.watch.setup_logging"):
        result = runner.invoke(app, ["--root", str(tmp_path / "missing"), "watch"])

    assert result.exit_code == 1
    assert "Could not start watcher" in result.output
