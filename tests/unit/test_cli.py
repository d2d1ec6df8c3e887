"""Unit tests for the scheduler CLI (careerintel.cli.scheduler)."""

from __future__ import annotations

import argparse
from argparse import Namespace
from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from careerintel.cli.scheduler import (
    _build_parser,
    _handle_run,
    _handle_stats,
    _positive_int,
    _print_job_table,
    main,
)
from careerintel.config.loader import DEFAULT_SCHEDULER_JOBS
from careerintel.config.settings import Settings
from careerintel.models.lifecycle import BatchSummary, StaleStats

# ======================================================================
# Shared helpers
# ======================================================================


def _app_config() -> dict[str, Any]:
    return {"scheduler": {"enabled": True, "jobs": {name: dict(spec) for name, spec in DEFAULT_SCHEDULER_JOBS.items()}}}


def _components(**schedulers: MagicMock) -> dict[str, Any]:
    store = MagicMock()
    store.initialize = AsyncMock()
    runner = MagicMock()
    runner.run_now = AsyncMock(return_value=BatchSummary(operation="jobs:process-unprocessed"))
    return {"store": store, "periodic_runner": runner, **schedulers}


# ======================================================================
# Parser
# ======================================================================


class TestBuildParser:
    def test_list(self) -> None:
        assert _build_parser().parse_args(["list"]).command == "list"

    def test_run_with_batch_size(self) -> None:
        args = _build_parser().parse_args(["run", "profiles:refresh-stale", "--batch-size", "10"])

        assert args.command == "run"
        assert args.job == "profiles:refresh-stale"
        assert args.batch_size == 10

    def test_run_batch_size_defaults_to_config(self) -> None:
        assert _build_parser().parse_args(["run", "jobs:process-unprocessed"]).batch_size is None

    def test_stats_collection_choices(self) -> None:
        assert _build_parser().parse_args(["stats", "jobs"]).collection == "jobs"
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["stats", "research"])

    def test_no_subcommand_prints_help_and_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as info:
            main([])

        assert info.value.code == 1
        assert "scheduler" in capsys.readouterr().out


class TestPositiveInt:
    def test_accepts_positive(self) -> None:
        assert _positive_int("25") == 25

    @pytest.mark.parametrize("value", ["0", "-3"])
    def test_rejects_non_positive(self, value: str) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            _positive_int(value)


# ======================================================================
# Handlers
# ======================================================================


class TestPrintJobTable:
    def test_lists_every_job(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _print_job_table(_app_config()) == 0

        out = capsys.readouterr().out
        for name in DEFAULT_SCHEDULER_JOBS:
            assert name in out


class TestHandleRun:
    @pytest.mark.asyncio
    async def test_configured_job_runs_through_periodic_runner(
        self, settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        components = _components()
        with patch("careerintel.main.build_all", return_value=components), patch(
            "careerintel.main.close_all", new_callable=AsyncMock
        ) as close_all:
            code = await _handle_run(Namespace(job="jobs:process-unprocessed", batch_size=None), settings, _app_config())

        assert code == 0
        components["store"].initialize.assert_awaited_once()
        components["periodic_runner"].run_now.assert_awaited_once_with("jobs:process-unprocessed")
        close_all.assert_awaited_once_with(components)
        assert "nothing to do" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_batch_size_override_calls_scheduler(self, settings: Settings) -> None:
        scheduler = MagicMock()
        scheduler.refresh_stale = AsyncMock(
            return_value=BatchSummary(operation="profiles:refresh-stale", selected=2, claimed=2, processed=1, failed=1)
        )
        components = _components(profile_scheduler=scheduler)
        with patch("careerintel.main.build_all", return_value=components), patch(
            "careerintel.main.close_all", new_callable=AsyncMock
        ):
            code = await _handle_run(Namespace(job="profiles:refresh-stale", batch_size=5), settings, _app_config())

        assert code == 1
        scheduler.refresh_stale.assert_awaited_once_with(5, timedelta(days=settings.record_stale_after_days))

    @pytest.mark.asyncio
    async def test_unknown_job_with_batch_size(self, settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        with patch("careerintel.main.build_all", return_value=components), patch(
            "careerintel.main.close_all", new_callable=AsyncMock
        ) as close_all:
            code = await _handle_run(Namespace(job="research:refresh-stale", batch_size=5), settings, _app_config())

        assert code == 1
        assert "unknown job" in capsys.readouterr().err
        close_all.assert_awaited_once()


class TestHandleStats:
    @pytest.mark.asyncio
    async def test_prints_breakdown(self, settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
        scheduler = MagicMock()
        scheduler.stale_stats = AsyncMock(return_value=StaleStats(total=4, fresh=1, stale_3_months=3, with_errors=1))
        components = _components(job_scheduler=scheduler)
        with patch("careerintel.main.build_all", return_value=components), patch(
            "careerintel.main.close_all", new_callable=AsyncMock
        ):
            code = await _handle_stats(Namespace(collection="jobs"), settings, _app_config())

        out = capsys.readouterr().out
        assert code == 0
        assert "jobs: 4 records" in out
        assert "1 (25%)" in out
        assert "3 (75%)" in out
