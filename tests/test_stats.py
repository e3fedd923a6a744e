"""Tests for PipelineStats."""

from __future__ import annotations

from requestlens.core.stats import PipelineStats


def test_initial_stats():
    snap = PipelineStats().snapshot()
    assert snap["records_enqueued"] == 0
    assert snap["records_sent"] == 0
    assert snap["batches_failed"] == 0
    assert snap["buffer_depth"] == 0
    assert snap["last_flush_ms"] == 0


def test_enqueue_tracks_depth():
    stats = PipelineStats()
    for depth in (1, 2, 3):
        stats.record_enqueued(depth)
    stats.update_buffer_depth(0)

    snap = stats.snapshot()
    assert snap["records_enqueued"] == 3
    assert snap["buffer_depth"] == 0
    assert snap["buffer_max_depth_ever"] == 3


def test_sent_and_failed_counters():
    stats = PipelineStats()
    stats.record_sent(50)
    stats.record_failed(10, dropped=4)
    stats.record_skipped()

    snap = stats.snapshot()
    assert snap["batches_sent"] == 1
    assert snap["records_sent"] == 50
    assert snap["batches_failed"] == 1
    assert snap["records_requeued"] == 6
    assert snap["records_dropped"] == 4
    assert snap["flushes_skipped"] == 1
    assert snap["last_flush_ms"] > 0
