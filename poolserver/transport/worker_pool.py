"""Fixed-size pool of long-lived worker threads draining the connection queue."""

import threading
from typing import Callable, Optional

from poolserver.bootstrap.config import WORKER_POLL_SECONDS
from poolserver.domain.connection_id import get_logger
from poolserver.lifecycle.state import ServerLifecycle
from poolserver.transport.connection_queue import BoundedConnectionQueue, ConnectionHandle
from poolserver.transport.context import WorkerContext
from poolserver.transport.worker import handle_connection

POOL_LOGGER = get_logger("transport.pool")

ConnectionHandler = Callable[[ConnectionHandle, WorkerContext], None]


class WorkerPool:
    """N workers, each looping dequeue, serve, close until shutdown.

    A worker leaves its loop only once shutdown was requested and the queue
    is empty, so connections already accepted are still served.
    """

    def __init__(
        self,
        workers: int,
        connection_queue: BoundedConnectionQueue,
        context: WorkerContext,
        lifecycle: Optional[ServerLifecycle] = None,
        handler: ConnectionHandler = handle_connection,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._worker_count = workers
        self._queue = connection_queue
        self._context = context
        self._lifecycle = lifecycle if lifecycle is not None else ServerLifecycle()
        self._handler = handler
        self._threads: list[threading.Thread] = []

    @property
    def worker_count(self) -> int:
        return self._worker_count

    @property
    def threads(self) -> tuple[threading.Thread, ...]:
        return tuple(self._threads)

    def start(self) -> None:
        """Create and start every worker thread."""
        if self._threads:
            raise RuntimeError("worker pool already started")
        for index in range(self._worker_count):
            worker = threading.Thread(
                target=self._worker_loop,
                name=f"worker-{index}",
                daemon=True,
            )
            self._threads.append(worker)
            self._lifecycle.register_worker(worker)
            worker.start()
        POOL_LOGGER.info(
            "Worker pool started",
            extra={"event": "pool_started", "workers": self._worker_count},
        )

    def join(self, timeout: float) -> bool:
        """Wait for workers to exit after shutdown; False if any are still alive."""
        return self._lifecycle.wait_for_workers(timeout)

    def _serve(self, handle: ConnectionHandle) -> None:
        try:
            self._handler(handle, self._context)
        except Exception as error:  # pylint: disable=broad-except
            POOL_LOGGER.error(
                "Connection handler raised",
                extra={
                    "event": "worker_error",
                    "client": handle.client,
                    "error_type": type(error).__name__,
                },
                exc_info=True,
            )

    def _worker_loop(self) -> None:
        worker_name = threading.current_thread().name
        POOL_LOGGER.debug(
            "Worker started", extra={"event": "worker_started", "worker": worker_name}
        )
        try:
            while True:
                handle = self._queue.dequeue(timeout=WORKER_POLL_SECONDS)
                if handle is None:
                    if self._lifecycle.should_stop():
                        break
                    continue
                self._serve(handle)
        finally:
            self._lifecycle.cleanup_worker(threading.current_thread())
            POOL_LOGGER.debug(
                "Worker stopped", extra={"event": "worker_stopped", "worker": worker_name}
            )
