"""Wall-clock bounds for parsing.

A timer alone cannot interrupt a CPU-bound parse, so the bound is enforced
twice: parsers poll a Deadline at fixed intervals and raise ImportTimeout
once it has passed, and the service awaits the parse in a worker thread
with asyncio.wait_for so the caller is answered on time even if the
worker has not reached its next poll yet.
"""

import asyncio
import time
from collections.abc import Callable
from typing import TypeVar

from mindweave.importer.errors import ImportTimeout

T = TypeVar("T")


class Deadline:
    """A monotonic point in time after which parsing must stop."""

    def __init__(self, seconds: float | None, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.seconds = seconds
        self._expires_at = None if seconds is None else clock() + seconds
        self._cancelled = False

    @classmethod
    def unbounded(cls) -> "Deadline":
        return cls(None)

    def expired(self) -> bool:
        if self._cancelled:
            return True
        return self._expires_at is not None and self._clock() >= self._expires_at

    def cancel(self) -> None:
        """Force the next check() to fail. Used once the caller has given up."""
        self._cancelled = True

    def check(self) -> None:
        if self.expired():
            raise ImportTimeout(self.seconds or 0)


async def run_bounded(fn: Callable[[Deadline], T], seconds: float) -> T:
    """Run fn(deadline) in a worker thread, raising ImportTimeout after `seconds`."""
    deadline = Deadline(seconds)
    try:
        return await asyncio.wait_for(asyncio.to_thread(fn, deadline), timeout=seconds)
    except TimeoutError as e:
        deadline.cancel()
        raise ImportTimeout(seconds) from e
