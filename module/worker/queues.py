import queue


class QueueClosed(Exception):
    """get() on a queue that is closed and fully drained"""


_CLOSED = object()


class ClosableQueue:
    """
    Bounded queue shared by many producers and many consumers.

    close() may only be called once every producer is done. Consumers keep
    getting items until the queue is drained, then every one of them gets
    QueueClosed.
    """

    def __init__(self, maxsize: int = 0):
        self._q = queue.Queue(maxsize)
        self._closed = False

    def put(self, item):
        if self._closed:
            raise QueueClosed("put on closed queue")
        self._q.put(item)

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._q.put(_CLOSED)

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self):
        item = self._q.get()
        if item is _CLOSED:
            # hand the marker on so the next consumer stops too
            self._q.put(_CLOSED)
            raise QueueClosed("queue closed")
        return item

    def qsize(self) -> int:
        return self._q.qsize()

    def __iter__(self):
        while True:
            try:
                yield self.get()
            except QueueClosed:
                return
