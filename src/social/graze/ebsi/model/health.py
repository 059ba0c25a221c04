import asyncio


class HealthGauge:
    """
    Failure pressure gauge backing the readiness probe.

    Registry fetch failures push the value up; a background task pulls it back down by one on every
    tick. While the value stays above the threshold, the service reports itself as not ready so that
    traffic moves away from an instance whose registry node is failing.
    """

    def __init__(self, value: int = 0, health_threshold: int = 100) -> None:
        self._value = value
        self._health_threshold = health_threshold
        self._lock = asyncio.Lock()

    async def record_failure(self, weight: int = 1) -> int:
        async with self._lock:
            self._value += int(weight)
            return self._value

    async def tick(self) -> int:
        async with self._lock:
            if self._value > 0:
                self._value -= 1
            return self._value

    async def is_healthy(self) -> bool:
        async with self._lock:
            return self._value <= self._health_threshold
