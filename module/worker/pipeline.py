import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from module.curl.curl_config import CurlConfig
from module.permute.permutation import PermutationIterator, calculate_total_permutations, iterate_permutations
from module.worker.queues import ClosableQueue
from module.worker.worker_pool import DEFAULT_WORKERS, ProgressCounter, WorkerPool
from utils.reporter import Reporter

PERM_QUEUE_SIZE = 10000
RESULT_QUEUE_SIZE = 1000


@dataclass
class RunSummary:
    total: int = 0
    errors: int = 0
    anomalies: int = 0


def close_when_done(threads: List[threading.Thread], q: ClosableQueue) -> threading.Thread:
    """Close q from a background thread once every thread in threads has finished"""
    def closer():
        for t in threads:
            t.join()
        q.close()

    t = threading.Thread(target=closer, name="faast-closer", daemon=True)
    t.start()
    return t


def start_producers(shards, perm_queue: ClosableQueue) -> threading.Thread:
    """
    One producer thread per shard. The queue is closed only after all of them
    are done. Returns the closer thread.
    """
    producers = []
    for i, shard in enumerate(shards):
        t = threading.Thread(
            target=iterate_permutations,
            args=(PermutationIterator(shard), perm_queue),
            name=f"faast-producer-{i}",
            daemon=True,
        )
        producers.append(t)
        t.start()

    return close_when_done(producers, perm_queue)


def process_results(result_queue: ClosableQueue, config: CurlConfig, reporter: Reporter) -> RunSummary:
    """Drain results until the queue is closed, reporting errors and anomalies"""
    summary = RunSummary()
    for result in result_queue:
        summary.total += 1
        if result.error is not None:
            summary.errors += 1
            reporter.error(result)
            continue

        try:
            if config.is_anomalous(result.response, warn=reporter.warning):
                summary.anomalies += 1
                reporter.anomaly(result)
        finally:
            result.response.close()

    return summary


def run_pipeline(config: CurlConfig, shards, reporter: Reporter,
                 progress_callback: Optional[Callable[[int], None]] = None,
                 num_workers: int = DEFAULT_WORKERS,
                 perm_queue_size: int = PERM_QUEUE_SIZE,
                 result_queue_size: int = RESULT_QUEUE_SIZE,
                 pool_ready: Optional[Callable[[WorkerPool], None]] = None) -> RunSummary:
    """
    producers -> permutation queue -> worker pool -> result queue -> reporter

    Blocks until every permutation of every shard has been tried and its
    result handled. pool_ready is called with the running pool so callers can
    stop() it.
    """
    perm_queue = ClosableQueue(perm_queue_size)
    result_queue = ClosableQueue(result_queue_size)

    start_producers(shards, perm_queue)

    progress = ProgressCounter(total=calculate_total_permutations(shards), callback=progress_callback)
    pool = WorkerPool(config, perm_queue, result_queue, progress, num_workers=num_workers)
    pool.start()
    if pool_ready is not None:
        pool_ready(pool)

    def close_results():
        pool.wait()
        result_queue.close()

    threading.Thread(target=close_results, name="faast-result-closer", daemon=True).start()

    return process_results(result_queue, config, reporter)
