from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

import pytest

from domain.models import BulkResult, EventRecord, IntegrationRequest


class RecordingSink:
    """Bulk sink double: keeps every batch, optional delay / canned result."""

    def __init__(
        self,
        *,
        delay_sec: float = 0.0,
        result_for: Optional[Callable[[Sequence[EventRecord]], BulkResult]] = None,
    ):
        self.delay_sec = delay_sec
        self.result_for = result_for
        self.batches: List[List[EventRecord]] = []
        self.call_times: List[float] = []
        self._lock = threading.Lock()
        self.called = threading.Event()

    def submit(self, batch: Sequence[EventRecord]) -> BulkResult:
        if self.delay_sec:
            time.sleep(self.delay_sec)
        with self._lock:
            # copy: the processor clears its list after the call
            self.batches.append(list(batch))
            self.call_times.append(time.monotonic())
        self.called.set()
        if self.result_for is not None:
            return self.result_for(batch)
        return BulkResult.accepted(len(batch))

    @property
    def records(self) -> List[EventRecord]:
        with self._lock:
            return [r for b in self.batches for r in b]


def make_request(n: int = 0, client_id: str = "seller-1") -> IntegrationRequest:
    return IntegrationRequest(
        client_id=client_id,
        timestamp=datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc),
        total_items=n,
        size_bytes=100 * n,
        processing_time_ms=1.5 * n,
        success=True,
        http_status="200",
        user_agent="pytest",
    )


def wait_until(cond: Callable[[], bool], timeout: float = 3.0, step: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if cond():
            return True
        time.sleep(step)
    return cond()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
