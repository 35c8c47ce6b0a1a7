"""
Unit tests for the BuildInvoker event producer.
"""

import dataclasses

import pytest

from buildcycle.models import (
    BuildFailed,
    BuildPhase,
    BuildStarted,
    BuildSucceeded,
    ToolSettings,
    TypeCheckCompleted,
)
from buildcycle.orchestration import BuildInvoker, BuildOutcome, Bundler, SubmissionMode


class ScriptedBundler(Bundler):
    """Bundler returning canned outcomes, one per call."""

    def __init__(self, outcomes=(), check_outcomes=()):
        self.outcomes = list(outcomes)
        self.check_outcomes = list(check_outcomes)
        self.cancelled = []
        self.bundle_calls = 0

    def bundle(self, config):
        self.bundle_calls += 1
        return self.outcomes.pop(0) if self.outcomes else BuildOutcome(success=True, elapsed_ms=1)

    def check_types(self, config):
        return self.check_outcomes.pop(0) if self.check_outcomes else BuildOutcome(success=True, elapsed_ms=2)

    def cancel(self, phase=None):
        self.cancelled.append(phase)


class RaisingBundler(ScriptedBundler):
    """Bundler whose bundle or type check raises instead of returning."""

    def __init__(self, bundle_error=None, check_error=None):
        super().__init__()
        self.bundle_error = bundle_error
        self.check_error = check_error

    def bundle(self, config):
        if self.bundle_error is not None:
            self.bundle_calls += 1
            raise self.bundle_error
        return super().bundle(config)

    def check_types(self, config):
        if self.check_error is not None:
            raise self.check_error
        return super().check_types(config)


class OneChangeWatcher:
    """Watcher reporting a single change, then waiting for the stop signal."""

    def __init__(self, changed):
        self.changed = changed
        self.primed = False
        self.calls = 0

    def prime(self):
        self.primed = True

    def wait_for_change(self, stop_event):
        self.calls += 1
        if self.calls == 1:
            return self.changed
        stop_event.wait()
        return None


@pytest.fixture
def events():
    return []


def _invoker(bundler, events, **kwargs):
    return BuildInvoker(bundler, events.append, ToolSettings(), **kwargs)


@pytest.mark.unit
class TestOnceMode:
    """Test cases for one-shot submissions."""

    def test_success_events(self, build_config, events, wait_until):
        invoker = _invoker(ScriptedBundler([BuildOutcome(success=True, elapsed_ms=5, output="ok")]), events)

        invoker.submit(build_config, SubmissionMode.ONCE)

        assert wait_until(lambda: len(events) == 2)
        invoker.close()
        assert events == [BuildStarted(1), BuildSucceeded(1, elapsed_ms=5, output="ok")]
        assert invoker.cycle == 1

    def test_failure_event(self, build_config, events, wait_until):
        outcome = BuildOutcome(success=False, elapsed_ms=7, diagnostic="index.ts(7,13): error")
        invoker = _invoker(ScriptedBundler([outcome]), events)

        invoker.submit(build_config, SubmissionMode.ONCE)

        assert wait_until(lambda: len(events) == 2)
        invoker.close()
        assert events[1] == BuildFailed(
            1, diagnostic="index.ts(7,13): error", fatal=False, phase=BuildPhase.BUNDLE, elapsed_ms=7
        )

    def test_fatal_failure_event(self, build_config, events, wait_until):
        outcome = BuildOutcome(success=False, elapsed_ms=0, diagnostic="Unable to launch", fatal=True)
        invoker = _invoker(ScriptedBundler([outcome]), events)

        invoker.submit(build_config, SubmissionMode.ONCE)

        assert wait_until(lambda: len(events) == 2)
        invoker.close()
        assert events[1].fatal is True

    def test_cancelled_build_emits_nothing(self, build_config, events, wait_until):
        bundler = ScriptedBundler([BuildOutcome(success=False, elapsed_ms=3, cancelled=True)])
        invoker = _invoker(bundler, events)

        invoker.submit(build_config, SubmissionMode.ONCE)

        assert wait_until(lambda: bundler.bundle_calls == 1)
        invoker.close()
        assert events == [BuildStarted(1)]

    def test_submit_twice(self, build_config, events):
        invoker = _invoker(ScriptedBundler(), events)
        invoker.submit(build_config, SubmissionMode.ONCE)

        with pytest.raises(RuntimeError, match="already been submitted"):
            invoker.submit(build_config, SubmissionMode.ONCE)
        invoker.close()

    def test_close_cancels_bundler(self, build_config, events):
        bundler = ScriptedBundler()
        invoker = _invoker(bundler, events)

        invoker.close()
        invoker.close()

        assert bundler.cancelled == [None, None]


@pytest.mark.unit
class TestTypeChecking:
    """Test cases for the concurrent type check."""

    def test_type_check_reported_separately(self, build_config, events, wait_until):
        config = dataclasses.replace(build_config, check_types=True)
        bundler = ScriptedBundler()
        invoker = _invoker(bundler, events)

        invoker.submit(config, SubmissionMode.ONCE)

        assert wait_until(lambda: len(events) == 3)
        invoker.close()
        assert events[0] == BuildStarted(1)
        assert set(events[1:]) == {BuildSucceeded(1, elapsed_ms=1), TypeCheckCompleted(1, elapsed_ms=2)}
        assert bundler.cancelled[0] is BuildPhase.TYPE_CHECK

    def test_type_errors(self, build_config, events, wait_until):
        config = dataclasses.replace(build_config, check_types=True)
        check = BuildOutcome(success=False, elapsed_ms=4, diagnostic="index.ts(3,5): error TS2322")
        invoker = _invoker(ScriptedBundler(check_outcomes=[check]), events)

        invoker.submit(config, SubmissionMode.ONCE)

        assert wait_until(lambda: len(events) == 3)
        invoker.close()
        failures = [event for event in events if isinstance(event, BuildFailed)]
        assert len(failures) == 1
        assert failures[0].phase is BuildPhase.TYPE_CHECK
        assert failures[0].cycle == 1

    def test_no_type_check_without_flag(self, build_config, events, wait_until):
        invoker = _invoker(ScriptedBundler(), events)

        invoker.submit(build_config, SubmissionMode.ONCE)

        assert wait_until(lambda: len(events) == 2)
        invoker.close()
        assert not any(isinstance(event, TypeCheckCompleted) for event in events)


@pytest.mark.unit
class TestWatchMode:
    """Test cases for watch submissions."""

    def test_rebuild_on_change(self, build_config, events, wait_until):
        watcher = OneChangeWatcher(["/src/index.ts"])
        invoker = _invoker(ScriptedBundler(), events, watcher_factory=lambda config: watcher)

        invoker.submit(build_config, SubmissionMode.WATCH)

        assert wait_until(lambda: len(events) == 4)
        invoker.close()
        assert watcher.primed
        assert events == [
            BuildStarted(1),
            BuildSucceeded(1, elapsed_ms=1),
            BuildStarted(2, ("/src/index.ts",)),
            BuildSucceeded(2, elapsed_ms=1),
        ]
        assert invoker.cycle == 2

    def test_close_stops_watching(self, build_config, events, wait_until):
        watcher = OneChangeWatcher(["/src/index.ts"])
        invoker = _invoker(ScriptedBundler(), events, watcher_factory=lambda config: watcher)
        invoker.submit(build_config, SubmissionMode.WATCH)
        assert wait_until(lambda: watcher.calls == 2)

        invoker.close()

        assert not invoker._producer.is_alive()

    def test_default_watcher_ignores_output(self, build_config, events):
        invoker = _invoker(ScriptedBundler(), events)

        watcher = invoker.watcher_factory(build_config)

        assert build_config.output_dir in watcher.ignore_paths
        assert build_config.artifact_path in watcher.ignore_paths

    def test_default_watcher_keeps_temp_directory_watchable(self, build_config, events):
        config = dataclasses.replace(build_config, temporary_output=True)
        invoker = _invoker(ScriptedBundler(), events)

        watcher = invoker.watcher_factory(config)

        assert config.output_dir not in watcher.ignore_paths


@pytest.mark.unit
class TestBundlerExceptions:
    """Exceptions on the worker threads become fatal failures."""

    def test_raising_bundle(self, build_config, events, wait_until):
        invoker = _invoker(RaisingBundler(bundle_error=RuntimeError("plugin broke")), events)

        invoker.submit(build_config, SubmissionMode.ONCE)

        assert wait_until(lambda: len(events) == 2)
        invoker.close()
        assert events[1] == BuildFailed(
            1, diagnostic="RuntimeError: plugin broke", fatal=True, phase=BuildPhase.BUNDLE
        )

    def test_raising_type_check(self, build_config, events, wait_until):
        config = dataclasses.replace(build_config, check_types=True)
        invoker = _invoker(RaisingBundler(check_error=OSError("checker vanished")), events)

        invoker.submit(config, SubmissionMode.ONCE)

        assert wait_until(lambda: len(events) == 3)
        invoker.close()
        failures = [event for event in events if isinstance(event, BuildFailed)]
        assert failures == [
            BuildFailed(1, diagnostic="OSError: checker vanished", fatal=True, phase=BuildPhase.TYPE_CHECK)
        ]
        assert BuildSucceeded(1, elapsed_ms=1) in events

    def test_watch_keeps_running_after_exception(self, build_config, events, wait_until):
        watcher = OneChangeWatcher(["/src/index.ts"])
        bundler = RaisingBundler(bundle_error=RuntimeError("plugin broke"))
        invoker = _invoker(bundler, events, watcher_factory=lambda config: watcher)

        invoker.submit(build_config, SubmissionMode.WATCH)

        assert wait_until(lambda: len(events) == 4)
        invoker.close()
        assert bundler.bundle_calls == 2
        assert [event.cycle for event in events if isinstance(event, BuildFailed)] == [1, 2]
