import time
from domain.ports import Clock

# segundos monotônicos (float), usados nos intervalos de flush
class SystemClock(Clock):
    def monotonic(self) -> float:
        return time.monotonic()
