from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Tuple

from domain.models import EventRecord, IntegrationRequest, PriceUpdate
from infra.bounded_queue import BoundedQueue

logger = logging.getLogger(__name__)


class BulkMetrics:
    """
    Porta de entrada não-bloqueante para os handlers de request.

    Toda chamada é fire-and-forget: só tenta enfileirar e retorna None,
    aceito ou não. Nada aqui espera o backend nem levanta exceção para o
    chamador. Fila cheia = registro mais novo descartado + warning no log.
    """

    def __init__(self, queue: BoundedQueue[EventRecord]):
        self._queue = queue

        self._tot_lock = threading.Lock()
        self.total_submitted = 0
        self.total_dropped = 0

    def submit_event(self, record: EventRecord) -> None:
        accepted = self._queue.try_enqueue(record)
        with self._tot_lock:
            self.total_submitted += 1
            if not accepted:
                self.total_dropped += 1
        if not accepted:
            logger.warning("Metrics queue is full - dropping metric entry (%s)", record.kind)

    def add_integration_request(
        self,
        client_id: str,
        timestamp: datetime,
        total_items: int,
        size_bytes: int,
        processing_time_ms: float,
        success: bool,
        http_status: str,
        user_agent: str,
    ) -> None:
        self.submit_event(
            IntegrationRequest(
                client_id=client_id,
                timestamp=timestamp,
                total_items=total_items,
                size_bytes=size_bytes,
                processing_time_ms=processing_time_ms,
                success=success,
                http_status=http_status,
                user_agent=user_agent,
            )
        )

    def add_price_update(
        self,
        client_id: str,
        timestamp: datetime,
        processing_time_ms: float,
        total_items: int,
        size_bytes: int,
        success: bool,
    ) -> None:
        self.submit_event(
            PriceUpdate(
                client_id=client_id,
                timestamp=timestamp,
                processing_time_ms=processing_time_ms,
                total_items=total_items,
                size_bytes=size_bytes,
                success=success,
            )
        )

    def totals(self) -> Tuple[int, int]:
        with self._tot_lock:
            return self.total_submitted, self.total_dropped
