import threading
from collections import deque
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime

from availability.core.events import TransitionEvent
from availability.utils.logging import logger


@dataclass
class Task:
    event: TransitionEvent
    enqueued_at: datetime = field(default_factory=datetime.now)


class EventManager:
    """
    Runs transition events through a handler on a bounded pool of worker threads.

    The queue never blocks the producer: when it is full the oldest pending
    task is dropped and logged. A task that raises is logged and discarded,
    the worker carries on with the next one.
    """

    def __init__(
        self,
        handler: Callable[[TransitionEvent], None],
        max_workers: int = 4,
        max_queue_size: int = 1000,
    ):
        self.handler = handler
        self.max_workers = max_workers
        self.max_queue_size = max_queue_size
        self.dropped = 0
        self._queue: deque[Task] = deque()
        self._condition = threading.Condition()
        self._executor: ThreadPoolExecutor | None = None
        self._running = False
        self._in_flight = 0

    @property
    def queue_size(self) -> int:
        with self._condition:
            return len(self._queue)

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self):
        with self._condition:
            if self._running:
                return
            self._running = True

        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="AvailabilityWorker"
        )
        for _ in range(self.max_workers):
            self._executor.submit(self._worker)

        logger.debug(f"Started event manager with {self.max_workers} worker(s)")

    def stop(self, wait: bool = True):
        """Stop accepting work; workers drain what is already queued, then exit."""
        with self._condition:
            self._running = False
            self._condition.notify_all()

        if self._executor:
            self._executor.shutdown(wait=wait)
            self._executor = None

        logger.debug("Stopped event manager")

    def add_event(self, event: TransitionEvent):
        """
        Queue an event for the workers.

        Args:
            event (TransitionEvent): The event to process.
        """
        with self._condition:
            if len(self._queue) >= self.max_queue_size:
                dropped = self._queue.popleft()
                self.dropped += 1
                logger.warning(
                    f"Event queue full ({self.max_queue_size}), dropped oldest "
                    f"{dropped.event.log_message} queued at {dropped.enqueued_at:%H:%M:%S}"
                )

            self._queue.append(Task(event=event))
            self._condition.notify_all()

        logger.trace(f"Added {event.log_message} to the queue.")

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until the queue is empty and no task is running."""
        with self._condition:
            return self._condition.wait_for(
                lambda: not self._queue and self._in_flight == 0, timeout
            )

    def _next_task(self) -> Task | None:
        with self._condition:
            while not self._queue and self._running:
                self._condition.wait()

            if not self._queue:
                return None

            self._in_flight += 1
            return self._queue.popleft()

    def _worker(self):
        while True:
            task = self._next_task()
            if task is None:
                return

            try:
                self.handler(task.event)
            except Exception:
                logger.exception(f"Error while processing {task.event.log_message}")
            finally:
                with self._condition:
                    self._in_flight -= 1
                    self._condition.notify_all()
