"""
Fire-and-forget turn metrics.

The request path only ever enqueues a record. A background worker hands
records to the sink, so a slow or broken sink can never delay or fail a chat turn.
"""

import logging
import queue
import threading
from dataclasses import asdict, dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass(frozen=True)
class MetricsRecord:
    session_id: str
    model: str
    provider: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost: float
    conversation_state: str
    slots_filled: int
    slots_total: int
    response_time_ms: float
    trip_generated: bool


class MetricsSink(Protocol):
    def record(self, record: MetricsRecord) -> None: ...


class LoggingMetricsSink:
    """Writes one structured log line per turn."""

    def __init__(self, logger_name: str = "trip_engine.metrics"):
        self.logger = logging.getLogger(logger_name)

    def record(self, record: MetricsRecord) -> None:
        fields = " ".join(f"{k}={v}" for k, v in asdict(record).items())
        self.logger.info(f"[METRICS] {fields}")


class MetricsDispatcher:
    """
    Bounded queue drained by a single daemon thread.

    submit() never blocks and never raises. When the queue is full the
    record is dropped with a warning.
    """

    def __init__(self, sink: MetricsSink, max_queue_size: int = 1000):
        self.sink = sink
        self.queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self.dropped = 0
        self._worker: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._worker = threading.Thread(target=self._drain, name="metrics-dispatcher", daemon=True)
        self._worker.start()
        logger.info("Metrics dispatcher started")

    def stop(self, timeout: float = 5.0) -> None:
        """
        Flush queued records and stop the worker.

        Waits at most ``timeout`` seconds for room in the queue and again for
        the worker to finish. A worker that is still busy after that keeps
        draining in the background; it is a daemon, so it ends with the process.
        """
        if not self.running:
            return
        try:
            self.queue.put(_STOP, timeout=timeout)
        except queue.Full:
            logger.warning(
                f"Metrics queue still full at shutdown, worker keeps draining "
                f"{self.pending()} records in the background"
            )
            return
        self._worker.join(timeout)
        if self._worker.is_alive():
            logger.warning(f"Metrics worker did not finish within {timeout}s, {self.pending()} records pending")
            return
        self._worker = None
        logger.info("Metrics dispatcher stopped")

    def submit(self, record: MetricsRecord) -> bool:
        try:
            self.queue.put_nowait(record)
            return True
        except queue.Full:
            self.dropped += 1
            logger.warning(f"Metrics queue full, dropping record for session {record.session_id}")
            return False

    def pending(self) -> int:
        return self.queue.qsize()

    def _drain(self) -> None:
        while True:
            item = self.queue.get()
            try:
                if item is _STOP:
                    return
                self.sink.record(item)
            except Exception as e:
                logger.error(f"Failed to record metrics: {e}")
            finally:
                self.queue.task_done()
