"""Tests for forward/inverse phase execution."""

from unittest.mock import MagicMock

import pytest

from pscdeploy.core.phases import Phase, run_forward, run_inverse
from pscdeploy.exceptions import PhaseFailedError
from pscdeploy.models.context import DeploymentContext
from pscdeploy.models.results import ResultStatus, RunReport


def recording_phases(calls, fail_forward=None, fail_inverse=None, fatal=None):
    """Three phases that record forward/inverse calls in order."""

    def make(name):
        def forward(context):
            calls.append(f"+{name}")
            if name == fail_forward:
                raise RuntimeError(f"{name} broke")
            return context.with_values(**{name: "done"})

        def inverse(context):
            calls.append(f"-{name}")
            if name == fail_inverse:
                raise RuntimeError(f"{name} undo broke")

        return Phase(name, forward, inverse, fatal_inverse=(name == fatal))

    return [make("one"), make("two"), make("three")]


class TestRunForward:
    def test_runs_in_order_and_threads_context(self):
        calls = []
        report = RunReport(operation="deploy")

        context = run_forward(recording_phases(calls), DeploymentContext(), report)

        assert calls == ["+one", "+two", "+three"]
        assert context.discovered == {"one": "done", "two": "done", "three": "done"}
        assert [p.status for p in report.phases] == [ResultStatus.SUCCESS] * 3

    def test_stops_at_first_failure(self):
        calls = []
        report = RunReport(operation="deploy")

        with pytest.raises(PhaseFailedError) as exc_info:
            run_forward(
                recording_phases(calls, fail_forward="two"),
                DeploymentContext(edge_project="a"),
                report,
            )

        assert calls == ["+one", "+two"]
        error = exc_info.value
        assert error.phase == "two"
        assert isinstance(error.cause, RuntimeError)
        assert error.__cause__ is error.cause
        # Snapshot holds what was discovered before the failure
        assert error.snapshot["edge_project"] == "a"
        assert error.snapshot["one"] == "done"
        assert "two" not in error.snapshot
        assert [(p.phase, p.status) for p in report.phases] == [
            ("one", ResultStatus.SUCCESS),
            ("two", ResultStatus.FAILURE),
        ]
        assert report.phases[1].error == "two broke"

    def test_logs_numbered_steps(self):
        logger = MagicMock()

        run_forward(recording_phases([]), DeploymentContext(), RunReport("deploy"), logger)

        steps = [c.args[0] for c in logger.step.call_args_list]
        assert steps == ["[1/3] one", "[2/3] two", "[3/3] three"]


class TestRunInverse:
    def test_runs_in_reverse_order(self):
        calls = []
        report = run_inverse(
            recording_phases(calls), DeploymentContext(), RunReport("teardown")
        )

        assert calls == ["-three", "-two", "-one"]
        assert report.exit_code == 0
        assert [p.phase for p in report.phases] == ["three", "two", "one"]

    def test_tolerates_non_fatal_failure(self):
        calls = []
        logger = MagicMock()

        report = run_inverse(
            recording_phases(calls, fail_inverse="two"),
            DeploymentContext(),
            RunReport("teardown"),
            logger,
        )

        assert calls == ["-three", "-two", "-one"]
        assert report.fatal_error is None
        assert report.exit_code == 0
        assert [p.phase for p in report.failed_phases] == ["two"]
        logger.warning.assert_called_once()
        logger.log_error.assert_not_called()

    def test_fatal_inverse_failure_sets_exit_code(self):
        calls = []
        report = run_inverse(
            recording_phases(calls, fail_inverse="one", fatal="one"),
            DeploymentContext(),
            RunReport("teardown"),
        )

        assert calls == ["-three", "-two", "-one"]
        assert report.fatal_error == "one: one undo broke"
        assert report.exit_code == 1

    def test_fatal_flag_only_matters_when_that_inverse_fails(self):
        report = run_inverse(
            recording_phases([], fail_inverse="three", fatal="one"),
            DeploymentContext(),
            RunReport("teardown"),
        )

        assert report.fatal_error is None
        assert report.exit_code == 0

    def test_phase_without_inverse_is_skipped(self):
        calls = []
        phases = recording_phases(calls)
        phases[1] = Phase("two", phases[1].forward)

        report = run_inverse(phases, DeploymentContext(), RunReport("teardown"))

        assert calls == ["-three", "-one"]
        assert report.phases[1].status == ResultStatus.SKIPPED

    def test_settle_delay_runs_before_inverse(self):
        calls = []
        phases = recording_phases(calls)
        phases[0] = Phase(
            "one", phases[0].forward, phases[0].inverse, settle_before_inverse=30
        )

        def sleep(seconds):
            calls.append(f"sleep {seconds}")

        run_inverse(phases, DeploymentContext(), RunReport("teardown"), sleep=sleep)

        assert calls == ["-three", "-two", "sleep 30", "-one"]

    def test_no_sleep_without_settle_delay(self):
        sleep = MagicMock()

        run_inverse(
            recording_phases([]), DeploymentContext(), RunReport("teardown"), sleep=sleep
        )

        sleep.assert_not_called()
