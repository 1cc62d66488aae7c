from __future__ import annotations

import logging
from collections import Counter
from typing import Sequence

from domain.models import BulkResult, EventRecord
from domain.ports import BulkSink

logger = logging.getLogger(__name__)


class LogBulkSink(BulkSink):
    """Sink de dry-run: só loga um resumo de cada batch, não indexa nada."""

    def __init__(self, index: str = "logs-default"):
        self.index = index
        self.total_batches = 0
        self.total_records = 0

    def submit(self, batch: Sequence[EventRecord]) -> BulkResult:
        self.total_batches += 1
        self.total_records += len(batch)

        kinds = Counter(r.kind for r in batch)
        summary = " ".join(f"{k}={n:,}" for k, n in sorted(kinds.items()))
        logger.info("[dry-run] index=%s batch=%d %s", self.index, len(batch), summary)
        return BulkResult.accepted(len(batch))
