"""
Bounded worker pool shared by the digest and transfer pipelines.

The work queue is fully loaded before any worker starts. Workers pull from it
until it is drained, so a worker that gives up early leaves its remaining
share to the others. Completion is a join barrier: run_pool returns only once
every worker has finished.

If the waiting thread is interrupted (Ctrl+C), the items still queued are
discarded so workers stop after their current item, and the interrupt is
re-raised once they have.
"""

from __future__ import annotations

import logging
import queue
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")

PROGRESS_LOG_EVERY = 100
WAIT_POLL_SECONDS = 0.5


def load_queue(items: Sequence[T]) -> queue.Queue:
    """Return a queue sized to items and pre-loaded with all of them."""
    work_queue: queue.Queue = queue.Queue(maxsize=max(len(items), 1))
    for item in items:
        work_queue.put_nowait(item)
    return work_queue


def discard_pending(work_queue: queue.Queue) -> int:
    """Empty the queue so workers stop pulling work. Returns items dropped."""
    discarded = 0
    while True:
        try:
            work_queue.get_nowait()
        except queue.Empty:
            return discarded
        discarded += 1


def drain_queue(
    work_queue: queue.Queue,
    process: Callable[[T], bool],
    error_budget: int,
    label: str,
) -> int:
    """
    Worker loop: process queued items until the queue is empty.

    Args:
        work_queue: Shared, pre-loaded queue
        process: Handles one item, returns False when the item failed
        error_budget: Failures tolerated before this worker stops pulling work
        label: Name used in log messages

    Returns:
        Number of failures this worker recorded
    """
    error_count = 0
    processed = 0
    while True:
        try:
            item = work_queue.get_nowait()
        except queue.Empty:
            break

        processed += 1
        if not process(item):
            error_count += 1

        if error_count > error_budget:
            logging.error(
                "%s worker exceeded max error count (%d). Shutting it down",
                label,
                error_budget,
            )
            break

        if processed % PROGRESS_LOG_EVERY == 0:
            logging.debug("A %s worker has processed %d items", label, processed)
    return error_count


def run_pool(
    items: Sequence[T],
    pool_size: int,
    consume: Callable[[queue.Queue], int],
) -> list[int]:
    """
    Run pool_size workers over a pre-loaded queue and wait for all of them.

    Returns:
        Failure count reported by each worker
    """
    work_queue = load_queue(items)
    worker_count = max(pool_size, 1)
    executor = ThreadPoolExecutor(max_workers=worker_count)
    try:
        futures = [executor.submit(consume, work_queue) for _ in range(worker_count)]
        pending = set(futures)
        while pending:
            # Timed waits keep the main thread responsive to KeyboardInterrupt.
            _, pending = wait(pending, timeout=WAIT_POLL_SECONDS)
    except BaseException:
        discarded = discard_pending(work_queue)
        logging.warning("Worker pool stopped early: discarded %d queued item(s)", discarded)
        raise
    finally:
        executor.shutdown(wait=True)
    return [future.result() for future in futures]


__all__ = ["discard_pending", "drain_queue", "load_queue", "run_pool"]
