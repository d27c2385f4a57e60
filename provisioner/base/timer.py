"""Wall-clock timing helper."""

from __future__ import annotations

import time
from typing import Callable, TypeVar

T = TypeVar("T")


def timed(fn: Callable[[], T]) -> tuple[float, T]:
    """Run *fn* and return ``(elapsed_seconds, result)``.

    Exceptions raised by *fn* propagate unchanged.
    """
    start = time.perf_counter()
    result = fn()
    return time.perf_counter() - start, result
