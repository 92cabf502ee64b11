"""Tests for the background refresh scheduler."""

import threading

import pytest
from unittest.mock import Mock

from src.shell.refresh_scheduler import RefreshScheduler


class TestRefreshScheduler:
    """Tests for RefreshScheduler."""

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            RefreshScheduler(Mock(), interval_seconds=0)

    def test_tick_calls_refresh(self):
        refresh = Mock()

        RefreshScheduler(refresh).tick()

        refresh.assert_called_once_with()

    def test_tick_swallows_and_logs_failure(self, caplog):
        refresh = Mock(side_effect=RuntimeError("upstream down"))

        RefreshScheduler(refresh).tick()

        assert "Scheduled refresh failed" in caplog.text

    def test_runs_on_interval_until_stopped(self):
        ticks = threading.Semaphore(0)
        scheduler = RefreshScheduler(ticks.release, interval_seconds=0.01)

        scheduler.start()
        try:
            assert ticks.acquire(timeout=2)
            assert ticks.acquire(timeout=2)
            assert scheduler.running
        finally:
            scheduler.stop()

        assert not scheduler.running

    def test_keeps_running_after_failure(self):
        calls = []
        second_call = threading.Event()

        def refresh():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first tick fails")
            second_call.set()

        scheduler = RefreshScheduler(refresh, interval_seconds=0.01)
        scheduler.start()
        try:
            assert second_call.wait(2)
        finally:
            scheduler.stop()

    def test_start_twice_keeps_one_thread(self):
        scheduler = RefreshScheduler(Mock(), interval_seconds=60)

        scheduler.start()
        thread = scheduler._thread
        scheduler.start()
        try:
            assert scheduler._thread is thread
        finally:
            scheduler.stop()

    def test_does_not_tick_immediately(self):
        refresh = Mock()
        scheduler = RefreshScheduler(refresh, interval_seconds=60)

        scheduler.start()
        scheduler.stop()

        refresh.assert_not_called()
