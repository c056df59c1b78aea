"""
Clock abstraction.

Every time-dependent component takes an epoch-milliseconds callable so tests
can drive time explicitly.
"""

import time
from collections.abc import Callable

Clock = Callable[[], int]


def system_clock() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)
