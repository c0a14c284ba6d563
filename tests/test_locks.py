import threading

import pytest

from xvkit.locks import LockError, SleepLock, SpinLock


def test_spinlock_acquire_release():
    lock = SpinLock("test")
    assert not lock.holding()
    lock.acquire()
    assert lock.holding()
    assert lock.locked
    assert lock.pcs
    lock.release()
    assert not lock.holding()
    assert not lock.locked
    assert lock.pcs == ()


def test_spinlock_double_acquire_raises():
    lock = SpinLock()
    lock.acquire()
    with pytest.raises(LockError):
        lock.acquire()
    lock.release()
    assert not lock.locked


def test_spinlock_release_unheld_raises():
    lock = SpinLock()
    with pytest.raises(LockError):
        lock.release()


def test_spinlock_not_held_by_other_thread():
    lock = SpinLock()
    lock.acquire()
    results = {}

    def worker():
        results["other"] = lock.holding()

    t = threading.Thread(target=worker)
    t.start()
    t.join(2)
    assert lock.holding() is True
    assert results["other"] is False
    lock.release()
    assert lock.holding() is False


def test_spinlock_release_from_other_thread_raises():
    lock = SpinLock()
    lock.acquire()
    errors = []

    def worker():
        try:
            lock.release()
        except LockError as exc:
            errors.append(exc)

    t = threading.Thread(target=worker)
    t.start()
    t.join(2)
    assert len(errors) == 1
    assert lock.holding()
    lock.release()


def test_spinlock_mutual_exclusion():
    lock = SpinLock()
    total = [0]
    held_inside = []
    guard = threading.Lock()

    def worker():
        for _ in range(1000):
            with lock:
                inside = lock.holding()
                value = total[0]
                total[0] = value + 1
            with guard:
                held_inside.append(inside)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)
    assert total[0] == 4000
    assert len(held_inside) == 4000
    assert all(held_inside)
    assert lock.locked is False or lock.locked == 0
    assert lock.holding() is False


def test_sleeplock_holding_by_pid():
    lock = SleepLock("s")
    lock.acquire(7)
    assert lock.holding(7)
    assert not lock.holding(8)
    lock.release()
    assert not lock.holding(7)
    assert lock.pid == 0


def test_sleeplock_waiter_blocks_until_release():
    lock = SleepLock()
    lock.acquire(1)
    acquired = threading.Event()

    def worker():
        lock.acquire(2)
        acquired.set()

    t = threading.Thread(target=worker, daemon=True)
    t.start()
    assert not acquired.wait(0.1)
    assert lock.holding(1)
    lock.release()
    assert acquired.wait(2)
    assert lock.holding(2)
    t.join(2)
    lock.release()
    assert not lock.locked