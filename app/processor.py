from __future__ import annotations

import enum
import logging
import threading
import time
from typing import List, Optional, Tuple

from domain.flush_policy import FlushPolicy
from domain.models import Batch, BulkOutcome, BulkResult, EventRecord
from domain.ports import BulkSink, Clock
from infra.bounded_queue import BoundedQueue

logger = logging.getLogger(__name__)


class ProcessorState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class BatchProcessor:
    """
    Consumidor único em background: fila -> batch -> flush policy -> sink.

    O batch só existe na thread do worker. Fechar a fila é a única forma de
    parar: o worker drena o que sobrou, faz o flush final e termina em STOPPED.
    """

    def __init__(
        self,
        queue: BoundedQueue[EventRecord],
        sink: BulkSink,
        policy: FlushPolicy,
        *,
        clock: Clock,
        poll_timeout_sec: float = 0.1,
        error_backoff_sec: float = 1.0,
    ):
        self.queue = queue
        self.sink = sink
        self.policy = policy
        self.clock = clock
        self.poll_timeout_sec = poll_timeout_sec
        self.error_backoff_sec = error_backoff_sec

        self._state = ProcessorState.IDLE
        self._thread: Optional[threading.Thread] = None
        self._stopped = threading.Event()

        self._tot_lock = threading.Lock()
        self.total_flushes = 0
        self.total_sent = 0
        self.total_failed = 0

    @property
    def state(self) -> ProcessorState:
        return self._state

    def start(self) -> None:
        if self._thread is not None:
            return
        self._state = ProcessorState.RUNNING
        self._thread = threading.Thread(
            target=self._worker, name="metrics-batch-processor", daemon=True
        )
        self._thread.start()

    def stop(self, timeout_sec: Optional[float] = None) -> bool:
        """
        Fecha a fila e espera até `timeout_sec` pelo drain.
        Retorna True quando o worker chegou em STOPPED.
        """
        self.queue.close()
        if self._thread is None:
            if len(self.queue):
                logger.warning("Processor never started, discarding %d queued metrics", len(self.queue))
            self._state = ProcessorState.STOPPED
            return True
        self._stopped.wait(timeout_sec)
        if self._state is not ProcessorState.STOPPED:
            logger.warning(
                "Metrics processor still %s after %.1fs, %d queued metrics at risk",
                self._state.value, timeout_sec or 0.0, len(self.queue),
            )
            return False
        return True

    def totals(self) -> Tuple[int, int, int]:
        with self._tot_lock:
            return self.total_flushes, self.total_sent, self.total_failed

    # -----------------------------
    # thread do worker
    # -----------------------------

    def _worker(self) -> None:
        batch: Batch = []
        last_flush = self.clock.monotonic()

        try:
            while not self.queue.is_closed_and_empty():
                try:
                    if self._state is ProcessorState.RUNNING and self.queue.closed:
                        self._state = ProcessorState.DRAINING
                        logger.info("Metrics queue closed, draining %d queued metrics", len(self.queue))

                    if self._state is ProcessorState.DRAINING:
                        item = self.queue.try_dequeue(0)
                        if item is not None:
                            batch.append(item)
                        if len(batch) >= self.policy.max_batch_size:
                            self._flush(batch)
                        continue

                    item = self.queue.try_dequeue(self.poll_timeout_sec)
                    if item is not None:
                        batch.append(item)

                    if self.policy.should_flush(len(batch), self.clock.monotonic() - last_flush):
                        try:
                            self._flush(batch)
                        finally:
                            last_flush = self.clock.monotonic()
                except Exception:
                    logger.exception("Error processing metrics queue")
                    time.sleep(self.error_backoff_sec)

            self._state = ProcessorState.DRAINING
            if batch:
                logger.info("Flushing %d remaining metrics", len(batch))
                try:
                    self._flush(batch)
                except Exception:
                    logger.exception("Failed to flush remaining metrics")
        finally:
            leftover = len(self.queue)
            if leftover:
                logger.warning("Discarding %d unconsumed metrics at shutdown", leftover)
            self._state = ProcessorState.STOPPED
            self._stopped.set()

    def _flush(self, batch: List[EventRecord]) -> None:
        # batch descartado qualquer que seja o resultado (sem retry)
        try:
            result = self.sink.submit(batch)
        finally:
            size = len(batch)
            batch.clear()
            with self._tot_lock:
                self.total_flushes += 1
        self._report(result, size)

    def _report(self, result: BulkResult, size: int) -> None:
        with self._tot_lock:
            self.total_sent += size - result.failure_count
            self.total_failed += result.failure_count

        if result.outcome is BulkOutcome.TRANSPORT_ERROR:
            logger.error("Failed to deliver metrics batch of %d: %s", size, result.error)
        elif result.outcome is BulkOutcome.INVALID_RESPONSE:
            logger.error("Bulk index error for batch of %d: %s", size, result.error)
        elif result.outcome is BulkOutcome.PARTIAL:
            logger.error(
                "Bulk index partial failure: %d of %d failures (first: %s)",
                result.failure_count, size, result.failed_items[0].reason,
            )
        else:
            logger.debug("Indexed metrics batch of %d", size)
