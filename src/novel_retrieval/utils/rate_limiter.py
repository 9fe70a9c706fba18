"""Rate limiting for polite scraping."""

import asyncio
from time import monotonic


class RateLimiter:
    """Bound in-flight requests and space out request starts.

    At most ``max_concurrent`` holders run at once, and consecutive
    acquisitions are at least ``delay_seconds`` apart. Use as an async
    context manager around each request.
    """

    _MAX_DELAY = 10.0  # Upper bound for adaptive back-off

    def __init__(self, delay_seconds: float = 0.1, max_concurrent: int = 6):
        self.delay_seconds = delay_seconds
        self.max_concurrent = max_concurrent
        self._configured_delay = delay_seconds
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._last_start: float = 0.0
        self._lock = asyncio.Lock()
        self.backoff_count: int = 0
        self.peak_delay: float = delay_seconds

    async def acquire(self) -> None:
        """Take a concurrency slot, then wait out the spacing delay."""
        await self._semaphore.acquire()
        try:
            async with self._lock:
                wait_time = self.delay_seconds - (monotonic() - self._last_start)
                if wait_time > 0:
                    await asyncio.sleep(wait_time)
                self._last_start = monotonic()
        except BaseException:
            self._semaphore.release()
            raise

    def release(self) -> None:
        """Give the concurrency slot back."""
        self._semaphore.release()

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def back_off(self) -> None:
        """Double the spacing delay after a 429 (capped at _MAX_DELAY)."""
        self.delay_seconds = min(max(self.delay_seconds, 0.5) * 2, self._MAX_DELAY)
        self.backoff_count += 1
        self.peak_delay = max(self.peak_delay, self.delay_seconds)

    def ease_off(self) -> None:
        """Halve the delay back toward the configured value after a success."""
        self.delay_seconds = max(self.delay_seconds / 2, self._configured_delay)

    @property
    def configured_delay(self) -> float:
        return self._configured_delay
