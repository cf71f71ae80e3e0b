"""
Unit tests for the local interval runner and the command line.
"""

import asyncio

import pytest

from quest_notifier import __main__ as cli
from quest_notifier.runner import _interval_loop


@pytest.mark.asyncio
class TestIntervalLoop:
    async def test_stops_when_event_is_set(self):
        stop_event = asyncio.Event()
        ticks = []

        async def job():
            ticks.append(1)
            stop_event.set()

        await asyncio.wait_for(_interval_loop("job", job, 60, stop_event), timeout=1)

        assert ticks == [1]

    async def test_failed_tick_does_not_end_the_loop(self):
        stop_event = asyncio.Event()
        ticks = []

        async def job():
            ticks.append(1)
            if len(ticks) == 1:
                raise RuntimeError("first tick fails")
            stop_event.set()

        await asyncio.wait_for(_interval_loop("job", job, 0, stop_event), timeout=1)

        assert len(ticks) == 2


class TestCommandLine:
    def test_sweep_command_runs_one_tick(self, mocker):
        run_sweep = mocker.patch.object(cli, "run_sweep", new=mocker.AsyncMock())
        mocker.patch.object(cli, "shutdown_logging")

        assert cli.main(["sweep"]) == 0
        run_sweep.assert_awaited_once()

    def test_failing_command_exits_non_zero(self, mocker):
        mocker.patch.object(
            cli, "run_digest", new=mocker.AsyncMock(side_effect=RuntimeError("boom"))
        )
        mocker.patch.object(cli, "shutdown_logging")

        assert cli.main(["digest"]) == 1

    def test_run_command_intervals(self, mocker):
        loop = mocker.patch.object(cli, "_run_loop", new=mocker.AsyncMock())
        mocker.patch.object(cli, "shutdown_logging")

        cli.main(["run", "--sweep-seconds", "5", "--digest-seconds", "7"])

        loop.assert_awaited_once_with(5, 7)

    def test_unknown_command_is_rejected(self):
        with pytest.raises(SystemExit):
            cli.main(["nope"])
