from __future__ import annotations

from ..config import ReconnectOptions


class ReconnectStrategy:
    """Linear backoff with a bounded attempt budget.

    ``attempts`` counts the ``open`` calls made since the last session
    reached ready. After the N-th failed attempt the next one waits
    ``base_delay_ms * N``.
    """

    def __init__(self, options: ReconnectOptions | None = None) -> None:
        opts = options or ReconnectOptions()
        self._max_attempts = opts.max_attempts
        self._base_delay_ms = opts.base_delay_ms

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def is_exhausted(self, attempts: int) -> bool:
        return attempts >= self._max_attempts

    def get_delay(self, attempts: int) -> int | None:
        """Return delay in milliseconds, or None if the budget is spent."""
        if self.is_exhausted(attempts):
            return None
        return self._base_delay_ms * attempts
