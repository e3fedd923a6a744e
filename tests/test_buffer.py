"""Tests for RecordBuffer."""

from __future__ import annotations

import threading

from requestlens.core.buffer import RecordBuffer


def test_enqueue_preserves_order(make_record):
    buf = RecordBuffer()
    records = [make_record() for _ in range(4)]
    for i, record in enumerate(records, start=1):
        assert buf.enqueue(record) == i

    assert buf.snapshot() == records
    assert len(buf) == 4
    assert not buf.is_empty


def test_enqueue_is_never_capped(make_record):
    """Capacity only applies on requeue; live traffic is never dropped."""
    buf = RecordBuffer()
    for _ in range(2000):
        buf.enqueue(make_record())
    assert len(buf) == 2000


def test_drain_all_empties_buffer(make_record):
    buf = RecordBuffer()
    records = [make_record() for _ in range(3)]
    for record in records:
        buf.enqueue(record)

    assert buf.drain_all() == records
    assert buf.is_empty
    assert buf.drain_all() == []


def test_requeue_goes_in_front_of_newer_records(make_record):
    buf = RecordBuffer()
    failed = [make_record("a"), make_record("b")]
    newer = make_record("c")
    buf.enqueue(newer)

    dropped = buf.requeue(failed, max_capacity=10)

    assert dropped == 0
    assert buf.snapshot() == failed + [newer]


def test_requeue_evicts_oldest_over_capacity(make_record):
    """A six-record batch requeued into an empty buffer capped at five."""
    buf = RecordBuffer()
    a, b, c, d, e, f = (make_record(x) for x in "abcdef")

    dropped = buf.requeue([a, b, c, d, e, f], max_capacity=5)

    assert dropped == 1
    assert buf.snapshot() == [b, c, d, e, f]


def test_requeue_can_evict_into_newer_records(make_record):
    buf = RecordBuffer()
    failed = [make_record("old1"), make_record("old2")]
    newer = [make_record(f"new{i}") for i in range(4)]
    for record in newer:
        buf.enqueue(record)

    dropped = buf.requeue(failed, max_capacity=3)

    assert dropped == 3
    assert buf.snapshot() == newer[1:]


def test_concurrent_enqueue_and_drain_lose_nothing(make_record):
    buf = RecordBuffer()
    records = [make_record() for _ in range(4000)]
    drained = []

    def producer(chunk):
        for record in chunk:
            buf.enqueue(record)

    threads = [threading.Thread(target=producer, args=(records[i::4],)) for i in range(4)]
    for t in threads:
        t.start()
    while any(t.is_alive() for t in threads):
        drained.extend(buf.drain_all())
    for t in threads:
        t.join()
    drained.extend(buf.drain_all())

    assert len(drained) == len(records)
    assert set(map(id, drained)) == set(map(id, records))
