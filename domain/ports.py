from __future__ import annotations

from typing import Protocol, Sequence

from .models import BulkResult, EventRecord


class Clock(Protocol):
    def monotonic(self) -> float: ...


# -----------------------------
# Backend de indexação (escrita em bulk)
# -----------------------------

class BulkSink(Protocol):
    def submit(self, batch: Sequence[EventRecord]) -> BulkResult:
        """Escreve o batch inteiro em uma chamada. Sem retry."""
        ...
