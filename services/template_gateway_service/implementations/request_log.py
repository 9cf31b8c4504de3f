"""Bounded in-memory request log and statistics."""

from __future__ import annotations

import threading
from collections import Counter, deque
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from services.template_gateway_service.models import GatewayStats, LogEntry
from services.template_gateway_service.protocols import RequestLogProtocol

UNKNOWN_ORIGIN = "unknown"
NO_API_KEY = "none"
MISSING_STATUS = 500


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


class RequestLogImpl(RequestLogProtocol):
    """Keeps the most recent ``capacity`` entries; oldest are evicted first."""

    def __init__(
        self, capacity: int = 1000, clock: Callable[[], datetime] | None = None
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._counter = 0
        self._lock = threading.Lock()
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def capacity(self) -> int:
        return self._capacity

    def now(self) -> datetime:
        return self._clock()

    def next_request_id(self) -> int:
        with self._lock:
            self._counter += 1
            return self._counter

    def record(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self, window_seconds: float = 3600) -> GatewayStats:
        with self._lock:
            entries = list(self._entries)
            total = self._counter

        cutoff = self._clock() - timedelta(seconds=window_seconds)
        recent = [entry for entry in entries if entry.timestamp > cutoff]
        if not recent:
            return GatewayStats(total_requests=total)

        durations = [entry.duration_ms for entry in recent if entry.duration_ms is not None]
        successes = sum(1 for entry in recent if entry.status is not None and entry.status < 400)

        origins = Counter(entry.origin or UNKNOWN_ORIGIN for entry in recent)
        api_keys = Counter(entry.api_key or NO_API_KEY for entry in recent)
        status_codes = Counter(
            str(entry.status if entry.status is not None else MISSING_STATUS) for entry in recent
        )

        return GatewayStats(
            total_requests=total,
            recent_requests=len(recent),
            average_response_time=(
                _round_half_up(sum(durations) / len(durations)) if durations else 0
            ),
            success_rate=_round_half_up(successes / len(recent) * 100),
            top_origins=dict(origins),
            top_api_keys=dict(api_keys),
            status_codes=dict(status_codes),
        )

    def recent_logs(self, limit: int = 50) -> list[LogEntry]:
        if limit <= 0:
            return []
        with self._lock:
            entries = list(self._entries)
        return list(reversed(entries[-limit:]))
