from __future__ import annotations

import logging
from typing import Optional

from config import AppConfig
from domain.flush_policy import FlushPolicy
from domain.models import EventRecord
from domain.ports import BulkSink, Clock
from infra.bounded_queue import BoundedQueue
from infra.clock import SystemClock

from .metrics import BulkMetrics
from .processor import BatchProcessor, ProcessorState

logger = logging.getLogger(__name__)


class MetricsPipeline:
    """
    Dono de um pipeline de métricas: fila limitada, processor e facade.

    - O sink é criado por quem chama e compartilhado com o processor.
    - stop() fecha a fila e espera (com limite) o drain terminar.
      Sair do processo antes disso perde o batch ainda não enviado.
    """

    def __init__(
        self,
        sink: BulkSink,
        *,
        queue_capacity: int = 10_000,
        max_batch_size: int = 1000,
        max_flush_interval_sec: float = 5.0,
        poll_timeout_sec: float = 0.1,
        error_backoff_sec: float = 1.0,
        shutdown_timeout_sec: float = 30.0,
        clock: Optional[Clock] = None,
    ):
        self.queue: BoundedQueue[EventRecord] = BoundedQueue(queue_capacity)
        self.policy = FlushPolicy(
            max_batch_size=max_batch_size,
            max_flush_interval_sec=max_flush_interval_sec,
        )
        self.processor = BatchProcessor(
            self.queue,
            sink,
            self.policy,
            clock=clock or SystemClock(),
            poll_timeout_sec=poll_timeout_sec,
            error_backoff_sec=error_backoff_sec,
        )
        self.shutdown_timeout_sec = shutdown_timeout_sec
        self._metrics = BulkMetrics(self.queue)

    @classmethod
    def from_config(cls, cfg: AppConfig, sink: BulkSink) -> "MetricsPipeline":
        return cls(
            sink,
            queue_capacity=cfg.pipeline.queue_capacity,
            max_batch_size=cfg.elasticsearch.bulk_size,
            max_flush_interval_sec=cfg.elasticsearch.flush_interval_sec,
            poll_timeout_sec=cfg.pipeline.poll_timeout_sec,
            error_backoff_sec=cfg.pipeline.error_backoff_sec,
            shutdown_timeout_sec=cfg.pipeline.shutdown_timeout_sec,
        )

    @property
    def metrics(self) -> BulkMetrics:
        return self._metrics

    @property
    def state(self) -> ProcessorState:
        return self.processor.state

    def start(self) -> None:
        self.processor.start()
        logger.info(
            "Metrics pipeline started: queue_capacity=%d bulk_size=%d flush_interval=%.1fs",
            self.queue.capacity, self.policy.max_batch_size, self.policy.max_flush_interval_sec,
        )

    def stop(self) -> bool:
        done = self.processor.stop(self.shutdown_timeout_sec)
        submitted, dropped = self._metrics.totals()
        flushes, sent, failed = self.processor.totals()
        logger.info(
            "Metrics pipeline stopped: submitted=%d dropped=%d flushes=%d sent=%d failed=%d",
            submitted, dropped, flushes, sent, failed,
        )
        return done

    def __enter__(self) -> "MetricsPipeline":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
