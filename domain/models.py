from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Union


def _iso(ts: datetime) -> str:
    # timestamp sem timezone = UTC
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.isoformat()


def _parse_ts(s: str) -> datetime:
    # fromisoformat só aceita "Z" a partir do 3.11
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


_TRUE = {"true", "1", "yes", "y", "sim"}
_FALSE = {"false", "0", "no", "n", "nao", "não", ""}


def _parse_bool(v: Any) -> bool:
    if isinstance(v, str):
        s = v.strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        raise ValueError(f"valor booleano inválido: {v!r}")
    return bool(v)


@dataclass(frozen=True)
class IntegrationRequest:
    """
    Uma requisição de integração atendida para um cliente (seller).
    """
    kind: ClassVar[str] = "integration.request"

    client_id: str
    timestamp: datetime
    total_items: int
    size_bytes: int
    processing_time_ms: float
    success: bool
    http_status: str
    user_agent: str

    def to_document(self) -> Dict[str, Any]:
        return {
            "metric": self.kind,
            "timestamp": _iso(self.timestamp),
            "client_id": self.client_id,
            "request_metrics": {
                "total_items": self.total_items,
                "size_bytes": self.size_bytes,
                "processing_time_ms": self.processing_time_ms,
            },
            "success": self.success,
            "http_status": self.http_status,
            "user_agent": self.user_agent,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "IntegrationRequest":
        """
        Monta o registro a partir de um objeto JSON já decodificado.

        Aceita os campos "flat" ou o bloco ``request_metrics`` gerado por
        ``to_document``. Só converte tipos (sem validação de schema); campo
        ausente ou inconvertível levanta KeyError / ValueError.
        """
        metrics = data.get("request_metrics") or data
        ts = data.get("timestamp")
        if ts is None:
            timestamp = datetime.now(timezone.utc)
        elif isinstance(ts, datetime):
            timestamp = ts
        else:
            timestamp = _parse_ts(str(ts))

        return cls(
            client_id=str(data["client_id"]),
            timestamp=timestamp,
            total_items=int(metrics["total_items"]),
            size_bytes=int(metrics["size_bytes"]),
            processing_time_ms=float(metrics["processing_time_ms"]),
            success=_parse_bool(data.get("success", True)),
            http_status=str(data.get("http_status", "")),
            user_agent=str(data.get("user_agent", "")),
        )


@dataclass(frozen=True)
class PriceUpdate:
    kind: ClassVar[str] = "price.update"

    client_id: str
    timestamp: datetime
    processing_time_ms: float
    total_items: int
    size_bytes: int
    success: bool

    def to_document(self) -> Dict[str, Any]:
        return {
            "metric": self.kind,
            "timestamp": _iso(self.timestamp),
            "client_id": self.client_id,
            "processing_time_ms": self.processing_time_ms,
            "total_items": self.total_items,
            "size_bytes": self.size_bytes,
            "success": self.success,
        }


# conjunto fechado de tipos de registro aceitos pelo pipeline
EventRecord = Union[IntegrationRequest, PriceUpdate]

Batch = List[EventRecord]


class BulkOutcome(str, Enum):
    ACCEPTED = "accepted"
    PARTIAL = "partial"
    TRANSPORT_ERROR = "transport_error"
    INVALID_RESPONSE = "invalid_response"


@dataclass(frozen=True)
class ItemFailure:
    position: int  # índice dentro do batch enviado
    status: int
    reason: str


@dataclass(frozen=True)
class BulkResult:
    outcome: BulkOutcome
    total: int
    failed_items: Tuple[ItemFailure, ...] = field(default_factory=tuple)
    error: Optional[str] = None

    def __post_init__(self) -> None:
        # PARTIAL sempre traz ao menos um item rejeitado
        if self.outcome is BulkOutcome.PARTIAL and not self.failed_items:
            raise ValueError("BulkResult PARTIAL exige failed_items não vazio")

    @property
    def reached_backend(self) -> bool:
        return self.outcome in (BulkOutcome.ACCEPTED, BulkOutcome.PARTIAL)

    @property
    def failure_count(self) -> int:
        if not self.reached_backend:
            return self.total
        return len(self.failed_items)

    @classmethod
    def accepted(cls, total: int) -> "BulkResult":
        return cls(outcome=BulkOutcome.ACCEPTED, total=total)
