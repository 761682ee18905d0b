import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from module.curl.curl_config import CurlConfig
from module.worker.queues import ClosableQueue
from utils.errors import FaastError, TransportError

DEFAULT_WORKERS = 10


@dataclass
class CurlResult:
    """Outcome of one permutation. Exactly one of response / error is set."""
    payload: List[str]
    response: object = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ProgressCounter:
    """Thread-safe request counter, optionally mirrored to a progress bar"""

    def __init__(self, total: int = 0, callback: Optional[Callable[[int], None]] = None):
        self.total = total
        self.callback = callback
        self._count = 0
        self._lock = threading.Lock()

    def add(self, n: int = 1):
        with self._lock:
            self._count += n
        if self.callback is not None:
            self.callback(n)

    @property
    def count(self) -> int:
        with self._lock:
            return self._count


class WorkerPool:
    """
    Fixed set of worker threads draining the permutation queue.

    Each permutation is tried once: build payload, wait on the shared rate
    limiter, POST, publish a CurlResult. Nothing is retried.
    """

    def __init__(self, config: CurlConfig, perm_queue: ClosableQueue, result_queue: ClosableQueue,
                 progress: Optional[ProgressCounter] = None, num_workers: int = DEFAULT_WORKERS):
        self.config = config
        self.perm_queue = perm_queue
        self.result_queue = result_queue
        self.progress = progress or ProgressCounter()
        self.num_workers = num_workers
        self.worker_count = 0
        self._threads: List[threading.Thread] = []
        self._count_lock = threading.Lock()
        self._stop = threading.Event()

    def start(self):
        for i in range(self.num_workers):
            t = threading.Thread(target=self._run, name=f"faast-worker-{i}", daemon=True)
            self._threads.append(t)
            t.start()

    def wait(self):
        for t in self._threads:
            t.join()

    def stop(self):
        """Cancel rate limiter waits and let workers exit at their next dequeue"""
        self._stop.set()

    def _run(self):
        with self._count_lock:
            self.worker_count += 1
        self.worker()

    def worker(self):
        for perm in self.perm_queue:
            if self._stop.is_set():
                return

            try:
                body = self.config.construct_payload(perm)
            except FaastError as e:
                self.result_queue.put(CurlResult(payload=perm, error=e))
                continue

            try:
                res = self.config.send_curl(body, cancel_event=self._stop)
                result = CurlResult(payload=perm, response=res)
            except FaastError as e:
                result = CurlResult(payload=perm, error=e)
            except Exception as e:
                # a broken permutation must not take the worker down with it
                err = TransportError(f"unexpected error: {e}")
                err.__cause__ = e
                result = CurlResult(payload=perm, error=err)

            self.progress.add(1)
            self.result_queue.put(result)
