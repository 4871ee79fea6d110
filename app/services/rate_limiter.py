"""
Tageslimit für teure Generierungs-Calls.

Prozessweiter Zähler, der beim Wechsel des UTC-Datums zurückgesetzt wird.
Wird nur in der API-Schicht per Dependency genutzt, nie im Verifikationskern.
"""

import logging
import threading
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable

from app.models.pydantic import RateLimitStatus

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RateLimiter:
    def __init__(
        self,
        max_calls_per_day: int = 10,
        enabled: bool = True,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.max_calls_per_day = max_calls_per_day
        self.enabled = enabled
        self._clock = clock
        self._lock = threading.Lock()
        self._call_count = 0
        self._day: date = self._today()

        if enabled:
            logger.info("Rate-Limiter aktiv: %d Calls/Tag", max_calls_per_day)
        else:
            logger.info("Rate-Limiter deaktiviert")

    def _today(self) -> date:
        now = self._clock()
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return now.date()

    def _next_reset(self) -> datetime:
        return datetime.combine(self._day + timedelta(days=1), time.min, tzinfo=timezone.utc)

    def _roll_over(self) -> None:
        today = self._today()
        if today != self._day:
            logger.info("Neuer Tag (%s), Rate-Limit-Zähler zurückgesetzt", today.isoformat())
            self._day = today
            self._call_count = 0

    def check(self) -> RateLimitStatus:
        with self._lock:
            if not self.enabled:
                return self._status(allowed=True)
            self._roll_over()
            return self._status(allowed=self._call_count < self.max_calls_per_day)

    def record_call(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._roll_over()
            self._call_count += 1
            logger.info("API-Calls heute: %d/%d", self._call_count, self.max_calls_per_day)

    def acquire(self) -> RateLimitStatus:
        """Prüfen und Slot reservieren in einem Schritt (unter dem Lock)."""
        with self._lock:
            if not self.enabled:
                return self._status(allowed=True)
            self._roll_over()
            if self._call_count >= self.max_calls_per_day:
                return self._status(allowed=False)
            self._call_count += 1
            logger.info("API-Calls heute: %d/%d", self._call_count, self.max_calls_per_day)
            return self._status(allowed=True)

    def release(self) -> None:
        """Gibt einen per acquire() reservierten Slot wieder frei (Call fehlgeschlagen)."""
        if not self.enabled:
            return
        with self._lock:
            self._roll_over()
            if self._call_count > 0:
                self._call_count -= 1

    def status(self) -> RateLimitStatus:
        return self.check()

    def reset(self) -> None:
        with self._lock:
            self._call_count = 0
            self._day = self._today()
        logger.info("Rate-Limiter manuell zurückgesetzt")

    def _status(self, allowed: bool) -> RateLimitStatus:
        remaining = max(0, self.max_calls_per_day - self._call_count)
        return RateLimitStatus(
            allowed=allowed,
            remaining=remaining,
            reset_at=self._next_reset() if self.enabled else None,
            call_count=self._call_count,
            max_calls=self.max_calls_per_day,
            enabled=self.enabled,
        )
