"""
Sliding-window sign-in attempt ledger.

Throttles repeated sign-in attempts per email inside one session manager.
This is a UX guard only: it lives in the client process and can be bypassed,
so the identity provider's own rate limits remain the real enforcement.
"""

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RateLimitLedger:
    """
    Per-email attempt timestamps, pruned to a sliding window.

    At most ``max_tracked_emails`` emails are kept; when the cap is exceeded
    the emails whose most recent attempt is oldest are evicted first.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 15 * 60,
        max_tracked_emails: int = 100,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.max_tracked_emails = max_tracked_emails
        self._clock = clock or time.monotonic
        self._attempts: dict[str, list[float]] = {}

    def __len__(self) -> int:
        return len(self._attempts)

    def __contains__(self, email: object) -> bool:
        return email in self._attempts

    def _recent(self, attempts: list[float], now: float) -> list[float]:
        return [t for t in attempts if now - t < self.window_seconds]

    def prune(self) -> None:
        """Drop expired attempts and enforce the tracked-email cap."""
        now = self._clock()
        for email in list(self._attempts):
            recent = self._recent(self._attempts[email], now)
            if recent:
                self._attempts[email] = recent
            else:
                del self._attempts[email]

        overflow = len(self._attempts) - self.max_tracked_emails
        if overflow > 0:
            by_newest = sorted(self._attempts.items(), key=lambda item: max(item[1]))
            for email, _ in by_newest[:overflow]:
                del self._attempts[email]
            logger.debug("Evicted %d emails from sign-in ledger", overflow)

    def attempts(self, email: str) -> int:
        """Number of attempts for ``email`` inside the current window."""
        return len(self._recent(self._attempts.get(email, []), self._clock()))

    def is_rate_limited(self, email: str) -> bool:
        self.prune()
        return self.attempts(email) >= self.max_attempts

    def retry_after(self, email: str) -> int:
        """Seconds until the oldest attempt in the window expires."""
        attempts = self._attempts.get(email)
        if not attempts:
            return 0
        remaining = self.window_seconds - (self._clock() - min(attempts))
        return max(0, int(remaining + 0.999))

    def record_attempt(self, email: str) -> None:
        self._attempts.setdefault(email, []).append(self._clock())
        if len(self._attempts) > self.max_tracked_emails:
            self.prune()

    def clear(self, email: str) -> None:
        self._attempts.pop(email, None)

    def reset(self) -> None:
        self._attempts.clear()
