"""Tests for the planner run registry, run log and progress callback."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import Mock

import pytest

from housing.errors import Conflict, NotFound
from housing.models import AutoAssignRequest, AutoAssignResult
from housing.planner import PlannerProgressCallback, PlannerRunLog, PlannerRunRegistry, RunStatus


@pytest.fixture
def mock_planner() -> Mock:
    planner = Mock()
    planner.run.return_value = AutoAssignResult(assigned=3, skipped=1, errors=["Could not place X"])
    return planner


class TestPlannerRunRegistry:
    def test_execute_completes_run(self, mock_planner: Mock) -> None:
        registry = PlannerRunRegistry(mock_planner)
        run = registry.create(AutoAssignRequest())
        assert run.status == RunStatus.PENDING

        registry.execute(run.id)

        assert run.status == RunStatus.COMPLETED
        assert run.result.assigned == 3
        assert run.started_at is not None and run.completed_at is not None
        mock_planner.run.assert_called_once()
        assert mock_planner.run.call_args.kwargs["cancel_event"] is run.cancel_event

    def test_planner_exception_marks_failed(self, mock_planner: Mock) -> None:
        mock_planner.run.side_effect = RuntimeError("roster unreachable")
        registry = PlannerRunRegistry(mock_planner)
        run = registry.create(AutoAssignRequest())

        registry.execute(run.id)

        assert run.status == RunStatus.FAILED
        assert run.error_message == "roster unreachable"

    def test_cancelled_result_marks_cancelled(self, mock_planner: Mock) -> None:
        mock_planner.run.return_value = AutoAssignResult(assigned=1, cancelled=True)
        registry = PlannerRunRegistry(mock_planner)
        run = registry.create(AutoAssignRequest())

        registry.execute(run.id)

        assert run.status == RunStatus.CANCELLED

    def test_cancel_pending_run(self, mock_planner: Mock) -> None:
        registry = PlannerRunRegistry(mock_planner)
        run = registry.create(AutoAssignRequest())

        registry.cancel(run.id)
        registry.execute(run.id)

        assert run.status == RunStatus.CANCELLED
        assert run.result.cancelled
        mock_planner.run.assert_not_called()

    def test_cancel_finished_run_conflicts(self, mock_planner: Mock) -> None:
        registry = PlannerRunRegistry(mock_planner)
        run = registry.create(AutoAssignRequest())
        registry.execute(run.id)

        with pytest.raises(Conflict):
            registry.cancel(run.id)

    def test_unknown_run(self, mock_planner: Mock) -> None:
        with pytest.raises(NotFound):
            PlannerRunRegistry(mock_planner).get("missing")

    def test_history_pruned(self, mock_planner: Mock) -> None:
        registry = PlannerRunRegistry(mock_planner, max_history=2)
        for _ in range(4):
            registry.execute(registry.create(AutoAssignRequest()).id)
        assert len(registry.list_runs()) == 2

    def test_logs_written_when_configured(self, mock_planner: Mock, tmp_path: Path) -> None:
        registry = PlannerRunRegistry(mock_planner, logs_dir=str(tmp_path))
        run = registry.create(AutoAssignRequest())

        registry.execute(run.id)

        assert run.log_path is not None
        data = json.loads(Path(run.log_path).read_text())
        assert data["run_id"] == run.id


class TestPlannerRunLog:
    def test_summary_counts(self) -> None:
        run_log = PlannerRunLog()
        run_log.log_placement("Pat Tester", "North Hall 101", 1)
        run_log.log_skip("Sam Tester", "no eligible room with a free bed")
        run_log.log_rejection("room_full", "Lee Tester", "North Hall 102", "Room North Hall 102 is full")
        run_log.log_rejection("room_full", "Max Tester", "North Hall 102", "Room North Hall 102 is full")

        summary = run_log.get_summary()

        assert summary["placements"] == 1
        assert summary["skips"] == 1
        assert summary["rejections"] == {"room_full": 2}

    def test_save_to_file(self, tmp_path: Path) -> None:
        run_log = PlannerRunLog(debug_mode=True)
        run_log.log_placement("Pat Tester", "North Hall 101", 1)

        path = run_log.save_to_file("run1", tmp_path / "planner")

        data = json.loads(Path(path).read_text())
        assert data["summary"]["placements"] == 1
        assert data["detailed_logs"]["placements"][0]["room"] == "North Hall 101"


class TestPlannerProgressCallback:
    def test_snapshot_counts_commits(self) -> None:
        callback = PlannerProgressCallback(report_every=2)
        callback.on_plan_ready(3, 1)
        callback.on_commit(True)
        callback.on_commit(False)
        callback.on_commit(True)

        assert callback.snapshot() == {"total": 3, "committed": 2, "rejected": 1}
        assert len(callback.run_log.progress) == 3

    def test_progress_is_logged_at_report_interval(self, caplog: pytest.LogCaptureFixture) -> None:
        callback = PlannerProgressCallback(report_every=2)
        callback.on_plan_ready(3, 0)

        with caplog.at_level(logging.INFO, logger="housing.planner.callbacks"):
            callback.on_commit(True)
            callback.on_commit(False)
            callback.on_commit(True)

        messages = [r.getMessage() for r in caplog.records if r.name == "housing.planner.callbacks"]
        assert messages == [
            "Auto-assign progress: 2/3 placements processed (1 rejected)",
            "Auto-assign progress: 3/3 placements processed (1 rejected)",
        ]
