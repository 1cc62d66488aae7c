from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FlushPolicy:
    """
    Gatilho de flush por tamanho OU tempo.

    Buffer vazio nunca dispara. Se os dois limites batem juntos, é um
    único True (um único flush).
    """
    max_batch_size: int = 1000
    max_flush_interval_sec: float = 5.0

    def __post_init__(self) -> None:
        if self.max_batch_size < 1:
            raise ValueError(f"max_batch_size deve ser >= 1, veio {self.max_batch_size}")
        if self.max_flush_interval_sec <= 0:
            raise ValueError(
                f"max_flush_interval_sec deve ser > 0, veio {self.max_flush_interval_sec}"
            )

    def should_flush(self, buffer_size: int, since_last_flush_sec: float) -> bool:
        if buffer_size <= 0:
            return False
        return (
            buffer_size >= self.max_batch_size
            or since_last_flush_sec >= self.max_flush_interval_sec
        )
