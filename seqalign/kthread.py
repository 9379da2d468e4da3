"""Thread helpers: a work-stealing parallel loop and an ordered multi-step pipeline."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional


def _run_threads(targets: List[Callable[[], None]]) -> None:
    errors: List[BaseException] = []
    lock = threading.Lock()

    def wrap(target: Callable[[], None]) -> Callable[[], None]:
        def run() -> None:
            try:
                target()
            except BaseException as exc:  # re-raised in the calling thread
                with lock:
                    errors.append(exc)

        return run

    threads = [threading.Thread(target=wrap(t)) for t in targets]
    for th in threads:
        th.start()
    for th in threads:
        th.join()
    if errors:
        raise errors[0]


def parallel_for(n_threads: int, func: Callable[[int, int], Any], n: int) -> None:
    """Call ``func(i, thread_id)`` once for every ``i`` in ``range(n)`` on ``n_threads`` threads.

    Thread ``t`` starts with indices ``t, t + n_threads, ...``; a thread
    that runs out takes work from the thread that is furthest behind.
    """
    if n_threads < 1:
        raise ValueError(f"n_threads must be positive, got {n_threads}")
    counters = list(range(n_threads))
    lock = threading.Lock()

    def fetch_add(w: int) -> int:
        with lock:
            k = counters[w]
            counters[w] += n_threads
        return k

    def steal() -> int:
        with lock:
            w = min(range(n_threads), key=counters.__getitem__)
            k = counters[w]
            counters[w] += n_threads
        return -1 if k >= n else k

    def worker(tid: int) -> Callable[[], None]:
        def run() -> None:
            while True:
                i = fetch_add(tid)
                if i >= n:
                    break
                func(i, tid)
            while (i := steal()) >= 0:
                func(i, tid)

        return run

    _run_threads([worker(t) for t in range(n_threads)])


@dataclass
class _PipeWorker:
    index: int
    step: int = 0
    data: Any = None


def pipeline(
    n_threads: int,
    func: Callable[[Any, int, Any], Any],
    shared: Any,
    n_steps: int,
) -> None:
    """Run ``func(shared, step, data)`` through ``n_steps`` steps on ``n_threads`` workers.

    Each worker carries one batch through every step; a step is never run on
    a batch while an earlier batch still waits for that step. Step 0 gets
    None as input; a step returning None (other than the last) ends the
    worker.
    """
    if n_threads < 1:
        n_threads = 1
    cv = threading.Condition()
    workers = [_PipeWorker(index=i) for i in range(n_threads)]
    state = {"next_index": n_threads}
    errors: List[BaseException] = []

    def blocked(w: _PipeWorker) -> bool:
        return any(
            other is not w and other.step <= w.step and other.index < w.index
            for other in workers
        )

    def worker(w: _PipeWorker) -> Callable[[], None]:
        def run() -> None:
            while w.step < n_steps:
                with cv:
                    while not errors and blocked(w):
                        cv.wait()
                    if errors:
                        return
                try:
                    w.data = func(shared, w.step, w.data if w.step else None)
                except BaseException:
                    with cv:
                        w.step = n_steps
                        errors.append(True)  # type: ignore[arg-type]
                        cv.notify_all()
                    raise
                with cv:
                    if w.step == n_steps - 1 or w.data is not None:
                        w.step = (w.step + 1) % n_steps
                    else:
                        w.step = n_steps
                    if w.step == 0:
                        w.index = state["next_index"]
                        state["next_index"] += 1
                    cv.notify_all()

        return run

    _run_threads([worker(w) for w in workers])