"""
Controllable Clock

Epoch-millisecond clock for tests that exercise staleness windows, breaker
cooldowns and revalidation periods without sleeping.
"""


class FakeClock:
    """Callable returning a fixed time that only moves when told to."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> int:
        self.now_ms += ms
        return self.now_ms

    def set(self, ms: int) -> None:
        self.now_ms = ms
