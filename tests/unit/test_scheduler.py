import threading
import time

import pytest

from gitvision.services.scheduler import ConcurrencyScheduler


def test_every_file_visited_once_and_progress_sums_to_one():
    seen = []
    lock = threading.Lock()
    increments = []

    def worker(f):
        with lock:
            seen.append(f)

    done = ConcurrencyScheduler(4).run(["a", "b", "c", "a"], worker, progress=increments.append)
    assert done == 3
    assert sorted(seen) == ["a", "b", "c"]
    assert len(increments) == 3
    assert sum(increments) == pytest.approx(1.0)


def test_concurrency_never_exceeds_ceiling():
    active = 0
    peak = 0
    lock = threading.Lock()

    def worker(_):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.01)
        with lock:
            active -= 1

    ConcurrencyScheduler(3).run([str(i) for i in range(20)], worker)
    assert 1 <= peak <= 3


def test_results_are_applied_before_run_returns():
    results = {}

    def worker(f):
        time.sleep(0.005)
        results[f] = True

    ConcurrencyScheduler(10).run([str(i) for i in range(25)], worker)
    assert len(results) == 25


def test_worker_failure_is_isolated():
    def worker(f):
        if f == "bad":
            raise RuntimeError("boom")

    assert ConcurrencyScheduler().run(["ok1", "bad", "ok2"], worker) == 2


def test_cancelled_pass_skips_remaining_files():
    cancel = threading.Event()
    seen = []

    def worker(f):
        seen.append(f)
        cancel.set()

    done = ConcurrencyScheduler(1).run([str(i) for i in range(10)], worker, cancel=cancel)
    assert done == 1
    assert seen == ["0"]


def test_empty_input_and_bad_ceiling():
    assert ConcurrencyScheduler().run([], lambda f: None) == 0
    with pytest.raises(ValueError):
        ConcurrencyScheduler(0)
