"""Unit tests for the bounded connection queue."""

import threading
import time
from unittest.mock import MagicMock

import pytest

from poolserver.transport.connection_queue import BoundedConnectionQueue, ConnectionHandle


def make_handle(index: int) -> ConnectionHandle:
    """Build a handle around a mock socket with a distinguishable port."""
    return ConnectionHandle(MagicMock(), ("127.0.0.1", 40000 + index))


def test_rejects_non_positive_capacity():
    """A queue must hold at least one connection."""
    with pytest.raises(ValueError):
        BoundedConnectionQueue(0)


def test_fifo_order_and_wraparound():
    """Handles come out in the order they went in, across several laps."""
    queue = BoundedConnectionQueue(3)
    handles = [make_handle(i) for i in range(7)]
    received = []
    for handle in handles:
        assert queue.enqueue(handle)
        received.append(queue.dequeue())
    assert received == handles

    for handle in handles[:3]:
        queue.enqueue(handle)
    assert [queue.dequeue() for _ in range(3)] == handles[:3]


def test_size_plus_free_slots_equals_capacity():
    """Queued items and free slots always add up to the capacity."""
    queue = BoundedConnectionQueue(4)
    for index in range(4):
        assert queue.size() + queue.free_slots() == queue.capacity
        queue.enqueue(make_handle(index))
    assert queue.size() == 4
    assert queue.free_slots() == 0
    for _ in range(4):
        queue.dequeue()
        assert queue.size() + queue.free_slots() == queue.capacity


def test_enqueue_times_out_when_full():
    """A full queue refuses further handles until a slot frees up."""
    queue = BoundedConnectionQueue(2)
    queue.enqueue(make_handle(0))
    queue.enqueue(make_handle(1))
    assert queue.enqueue(make_handle(2), timeout=0.05) is False
    assert queue.size() == 2


def test_dequeue_times_out_when_empty():
    """An empty queue never hands out an item."""
    queue = BoundedConnectionQueue(2)
    assert queue.dequeue(timeout=0.05) is None
    assert queue.free_slots() == 2


def test_blocked_enqueue_resumes_after_dequeue():
    """A producer blocked on a full queue proceeds once a consumer takes one."""
    queue = BoundedConnectionQueue(1)
    first, second = make_handle(0), make_handle(1)
    queue.enqueue(first)
    finished = threading.Event()

    def producer():
        queue.enqueue(second)
        finished.set()

    thread = threading.Thread(target=producer)
    thread.start()
    time.sleep(0.1)
    assert not finished.is_set()

    assert queue.dequeue() is first
    assert finished.wait(timeout=2.0)
    assert queue.dequeue(timeout=1.0) is second
    thread.join(timeout=2.0)


def test_blocked_dequeue_resumes_after_enqueue():
    """A consumer blocked on an empty queue wakes when an item arrives."""
    queue = BoundedConnectionQueue(1)
    result = []

    thread = threading.Thread(target=lambda: result.append(queue.dequeue()))
    thread.start()
    time.sleep(0.1)
    assert result == []

    handle = make_handle(0)
    queue.enqueue(handle)
    thread.join(timeout=2.0)
    assert result == [handle]


def test_concurrent_producers_and_consumers_deliver_each_handle_once():
    """Every handle is consumed exactly once under contention."""
    queue = BoundedConnectionQueue(3)
    handles = [make_handle(i) for i in range(200)]
    consumed = []
    consumed_lock = threading.Lock()

    def producer(chunk):
        for handle in chunk:
            queue.enqueue(handle)

    def consumer():
        while True:
            handle = queue.dequeue(timeout=0.5)
            if handle is None:
                return
            with consumed_lock:
                consumed.append(handle)

    producers = [
        threading.Thread(target=producer, args=(handles[i::4],)) for i in range(4)
    ]
    consumers = [threading.Thread(target=consumer) for _ in range(3)]
    for thread in producers + consumers:
        thread.start()
    for thread in producers + consumers:
        thread.join(timeout=10.0)

    assert len(consumed) == len(handles)
    assert {h.client for h in consumed} == {h.client for h in handles}
    assert queue.size() == 0


def test_handle_formats_client_address():
    """The handle exposes host:port for logging."""
    handle = ConnectionHandle(MagicMock(), ("10.0.0.1", 5555))
    assert handle.client == "10.0.0.1:5555"
