"""Tests for scheduling metrics"""

import logging

import pytest

from voicetask_scheduler.metrics import SchedulingMetrics


def test_track_scheduling():
    metrics = SchedulingMetrics()

    metrics.track_scheduling("success", 10)
    metrics.track_scheduling("fallback", 20)
    metrics.track_scheduling("error", 30)

    stats = metrics.snapshot()["scheduling"]
    assert stats["total"] == 3
    assert stats["successful"] == 1
    assert stats["fallbacks"] == 1
    assert stats["errors"] == 1
    assert stats["average_duration_ms"] == pytest.approx(20)


def test_unknown_outcome_rejected():
    with pytest.raises(ValueError):
        SchedulingMetrics().track_scheduling("timeout", 1)


def test_cache_counters():
    metrics = SchedulingMetrics()
    metrics.track_cache("schedule", hit=False)
    metrics.track_cache("schedule", hit=True)
    metrics.track_cache("ranking", hit=True)

    snapshot = metrics.snapshot()
    assert snapshot["cache_hits"] == {"schedule": 1, "ranking": 1}
    assert snapshot["cache_misses"] == {"schedule": 1}


def test_track_operation_logs_duration(caplog):
    metrics = SchedulingMetrics()

    with caplog.at_level(logging.INFO, logger="voicetask_scheduler.metrics"):
        with metrics.track_operation("rank_days"):
            pass

    assert "Operation 'rank_days' completed in" in caplog.text


def test_track_operation_logs_on_error(caplog):
    metrics = SchedulingMetrics()

    with caplog.at_level(logging.INFO, logger="voicetask_scheduler.metrics"):
        with pytest.raises(RuntimeError):
            with metrics.track_operation("find_best_slot"):
                raise RuntimeError("boom")

    assert "find_best_slot" in caplog.text
