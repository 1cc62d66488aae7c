from __future__ import annotations

import json
from typing import Any, List, Mapping, Optional, Sequence

import httpx

from domain.models import BulkOutcome, BulkResult, EventRecord, ItemFailure
from domain.ports import BulkSink


class ElasticsearchBulkSink(BulkSink):
    """
    Escreve batches via endpoint `_bulk` do Elasticsearch.

    1 POST por batch, todos os documentos no mesmo índice fixo.
    Falhas voltam como BulkResult (nunca exceção) e não há retry aqui.
    """

    def __init__(
        self,
        url: str,
        index: str,
        *,
        timeout_sec: float = 10.0,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._bulk_url = url.rstrip("/") + "/_bulk"
        self.index = index
        self._timeout = timeout_sec
        self._headers = dict(headers or {})
        self._client: Optional[httpx.Client] = None

    def start(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.Client(timeout=self._timeout, headers=self._headers)

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ElasticsearchBulkSink":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _body(self, batch: Sequence[EventRecord]) -> bytes:
        action = json.dumps({"index": {"_index": self.index}})
        lines: List[str] = []
        for record in batch:
            lines.append(action)
            lines.append(json.dumps(record.to_document()))
        # o bulk exige newline no final
        return ("\n".join(lines) + "\n").encode("utf-8")

    def submit(self, batch: Sequence[EventRecord]) -> BulkResult:
        total = len(batch)
        if total == 0:
            return BulkResult.accepted(0)
        if self._client is None:
            raise RuntimeError("ElasticsearchBulkSink.submit chamado antes de start()")

        try:
            r = self._client.post(
                self._bulk_url,
                content=self._body(batch),
                headers={"Content-Type": "application/x-ndjson"},
            )
        except httpx.TransportError as e:
            return BulkResult(
                outcome=BulkOutcome.TRANSPORT_ERROR,
                total=total,
                error=f"{type(e).__name__}: {e}",
            )

        if r.status_code >= 300:
            return BulkResult(
                outcome=BulkOutcome.INVALID_RESPONSE,
                total=total,
                error=f"HTTP {r.status_code}: {r.text[:500]}",
            )

        try:
            payload = r.json()
        except ValueError as e:
            return BulkResult(
                outcome=BulkOutcome.INVALID_RESPONSE,
                total=total,
                error=f"undecodable bulk response: {e}",
            )

        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            return BulkResult(
                outcome=BulkOutcome.INVALID_RESPONSE,
                total=total,
                error="bulk response has no 'items' list",
            )
        if len(items) != total:
            return BulkResult(
                outcome=BulkOutcome.INVALID_RESPONSE,
                total=total,
                error=f"bulk response has {len(items)} items for {total} documents",
            )

        try:
            failures = _item_failures(items)
        except MalformedBulkItem as e:
            return BulkResult(
                outcome=BulkOutcome.INVALID_RESPONSE,
                total=total,
                error=str(e),
            )
        if failures:
            return BulkResult(
                outcome=BulkOutcome.PARTIAL,
                total=total,
                failed_items=tuple(failures),
            )
        return BulkResult.accepted(total)


class MalformedBulkItem(ValueError):
    pass


def _item_failures(items: List[Any]) -> List[ItemFailure]:
    out: List[ItemFailure] = []
    for pos, item in enumerate(items):
        # cada item: {"<action>": {"status": 201, "error": {...}}}
        result = next(iter(item.values()), None) if isinstance(item, dict) and len(item) == 1 else None
        if not isinstance(result, dict):
            raise MalformedBulkItem(f"bulk item {pos} is not an action result: {item!r:.200}")
        status = result.get("status")
        if isinstance(status, bool) or not isinstance(status, int):
            raise MalformedBulkItem(f"bulk item {pos} has invalid status {status!r:.50}")

        error = result.get("error")
        if error is None and status < 300:
            continue
        if isinstance(error, dict):
            reason = f"{error.get('type', 'error')}: {error.get('reason', '')}"
        else:
            reason = str(error) if error is not None else f"status {status}"
        out.append(ItemFailure(position=pos, status=status, reason=reason))
    return out
