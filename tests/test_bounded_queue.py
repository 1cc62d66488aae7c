import threading
import time

import pytest

from infra.bounded_queue import BoundedQueue


def test_fifo_order():
    q = BoundedQueue(10)
    for i in range(5):
        assert q.try_enqueue(i) is True

    assert [q.try_dequeue(0.01) for _ in range(5)] == [0, 1, 2, 3, 4]
    assert q.try_dequeue(0.01) is None


def test_enqueue_beyond_capacity_rejects_newest_without_blocking():
    q = BoundedQueue(2)
    assert q.try_enqueue("a")
    assert q.try_enqueue("b")

    t0 = time.monotonic()
    assert q.try_enqueue("c") is False
    assert time.monotonic() - t0 < 0.05

    # oldest records are kept
    assert q.try_dequeue() == "a"
    assert q.try_dequeue() == "b"
    assert q.try_dequeue() is None


def test_dequeue_waits_up_to_timeout():
    q = BoundedQueue(1)
    t0 = time.monotonic()
    assert q.try_dequeue(0.1) is None
    assert time.monotonic() - t0 >= 0.09


def test_close_rejects_new_but_keeps_pending():
    q = BoundedQueue(5)
    q.try_enqueue(1)
    q.try_enqueue(2)
    q.close()

    assert q.try_enqueue(3) is False
    assert q.closed
    assert not q.is_closed_and_empty()
    assert q.try_dequeue(1.0) == 1
    assert q.try_dequeue(1.0) == 2
    assert q.is_closed_and_empty()


def test_closed_queue_does_not_wait_on_dequeue():
    q = BoundedQueue(5)
    q.close()
    t0 = time.monotonic()
    assert q.try_dequeue(5.0) is None
    assert time.monotonic() - t0 < 0.5


def test_close_is_idempotent():
    q = BoundedQueue(5)
    q.try_enqueue("x")
    q.close()
    q.close()
    assert q.closed
    assert len(q) == 1
    assert q.try_dequeue() == "x"
    assert q.is_closed_and_empty()


def test_open_empty_queue_is_not_terminal():
    assert BoundedQueue(3).is_closed_and_empty() is False


def test_invalid_capacity():
    with pytest.raises(ValueError):
        BoundedQueue(0)


def test_concurrent_producers_never_exceed_capacity():
    q = BoundedQueue(100)
    accepted = []
    lock = threading.Lock()

    def produce(pid):
        ok = 0
        for i in range(50):
            if q.try_enqueue((pid, i)):
                ok += 1
        with lock:
            accepted.append(ok)

    threads = [threading.Thread(target=produce, args=(p,)) for p in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(accepted) == 100
    assert len(q) == 100

    # per-producer order is preserved
    seen = {}
    while (item := q.try_dequeue()) is not None:
        pid, i = item
        assert i > seen.get(pid, -1)
        seen[pid] = i
