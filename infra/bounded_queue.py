from __future__ import annotations

import threading
from queue import Queue, Full, Empty
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class BoundedQueue(Generic[T]):
    """
    FIFO de capacidade fixa entre N produtores e 1 consumidor.

    - try_enqueue nunca bloqueia: fila cheia (ou fechada) rejeita o registro
      mais novo e retorna False. Os mais antigos nunca são descartados.
    - try_dequeue espera no máximo `timeout` segundos.
    - close() para de aceitar; o que já está na fila continua saindo.
    """

    def __init__(self, capacity: int = 10_000):
        if capacity < 1:
            raise ValueError(f"capacidade da fila deve ser >= 1, veio {capacity}")
        self.capacity = int(capacity)
        self._q: Queue[T] = Queue(maxsize=self.capacity)
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return self._q.qsize()

    def try_enqueue(self, item: T) -> bool:
        # lock ordena enqueue x close(): nada entra depois do close
        with self._lock:
            if self._closed:
                return False
            try:
                self._q.put_nowait(item)
            except Full:
                return False
            return True

    def try_dequeue(self, timeout: float = 0.0) -> Optional[T]:
        try:
            if timeout <= 0 or self._closed:
                return self._q.get_nowait()
            return self._q.get(timeout=timeout)
        except Empty:
            return None

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def is_closed_and_empty(self) -> bool:
        with self._lock:
            return self._closed and self._q.empty()
