"""
In-memory request metrics for the health, status, metrics and admin endpoints.
Why: quick visibility for a single-process demo without Prometheus.

Known limitation: requests-per-minute is counted from the same 50-entry
buffer that backs the recent activity list, so any window with more than
50 requests is undercounted.
"""

import math
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Deque, List, Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .logging import get_logger

_LOG = get_logger(__name__)

SAMPLE_CAPACITY = 1000
RECENT_CAPACITY = 50
RATE_WINDOW_SECONDS = 60
HEALTHY_SUCCESS_RATIO = 0.95
HEALTHY_MAX_AVERAGE_MS = 1000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> datetime:
    # Naive timestamps are taken to be UTC.
    if value is None:
        return _utcnow()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _truncate_client(client: Optional[str]) -> str:
    return f"{(client or 'unknown')[:10]}..."


def _is_success(status_code: int) -> bool:
    return 200 <= status_code <= 399


def _percent(part: int, whole: int) -> int:
    # Half-up rounding, no traffic counts as 100%.
    if whole <= 0:
        return 100
    return int(math.floor(part * 100 / whole + 0.5))


@dataclass(frozen=True)
class RequestRecord:
    method: str
    path: str
    status_code: int
    response_time_ms: float
    timestamp: datetime
    client: str

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "path": self.path,
            "status_code": self.status_code,
            "response_time_ms": self.response_time_ms,
            "timestamp": self.timestamp.isoformat(),
            "client": self.client,
        }


@dataclass(frozen=True)
class MetricsSnapshot:
    request_total: int
    request_success: int
    request_errors: int
    requests_per_minute: int
    peak_requests_per_minute: int
    response_time_samples: Tuple[float, ...]
    average_response_time_ms: float
    min_response_time_ms: float
    max_response_time_ms: float
    recent_requests: Tuple[RequestRecord, ...]
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def has_samples(self) -> bool:
        return bool(self.response_time_samples)


@dataclass(frozen=True)
class HealthSummary:
    healthy: bool
    success_rate: int
    average_response_time_ms: float
    total_requests: int
    errors: int

    def to_dict(self) -> dict:
        return {
            "healthy": self.healthy,
            "success_rate": self.success_rate,
            "average_response_time_ms": round(self.average_response_time_ms, 2),
            "total_requests": self.total_requests,
            "errors": self.errors,
        }


@dataclass(frozen=True)
class PeriodMetrics:
    period: str
    requests: int
    success: int
    errors: int
    success_rate: int
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "requests": self.requests,
            "success": self.success,
            "errors": self.errors,
            "success_rate": self.success_rate,
            "timestamp": self.timestamp.isoformat(),
        }


class MetricsAggregator:
    """Rolling-window request statistics shared by every request handler.

    All state lives behind one lock: sync handlers run in a threadpool and
    the rate job runs on a scheduler thread.
    """

    def __init__(
        self,
        enable_periodic_recompute: bool = False,
        recompute_interval_seconds: int = RATE_WINDOW_SECONDS,
        sample_capacity: int = SAMPLE_CAPACITY,
        recent_capacity: int = RECENT_CAPACITY,
    ) -> None:
        if sample_capacity < 1 or recent_capacity < 1:
            raise ValueError("buffer capacities must be at least 1")
        self._lock = threading.Lock()
        self.sample_capacity = sample_capacity
        self.recent_capacity = recent_capacity
        self.recompute_interval_seconds = recompute_interval_seconds
        self._scheduler: Optional[BackgroundScheduler] = None
        if enable_periodic_recompute:
            self._scheduler = BackgroundScheduler()
        self._clear()

    def _clear(self) -> None:
        self._total = 0
        self._success = 0
        self._errors = 0
        self._per_minute = 0
        self._peak_per_minute = 0
        self._samples: Deque[float] = deque()
        self._min = math.inf
        self._max = 0.0
        self._recent: Deque[RequestRecord] = deque(maxlen=self.recent_capacity)

    @property
    def periodic_recompute_enabled(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        if self._scheduler is None or self._scheduler.running:
            return
        self._scheduler.add_job(
            self.recompute_request_rate,
            trigger=IntervalTrigger(seconds=self.recompute_interval_seconds),
            id="recompute_request_rate",
            replace_existing=True,
        )
        self._scheduler.start()
        _LOG.info(
            "Request rate job scheduled",
            extra={"extra_fields": {"interval_s": self.recompute_interval_seconds}},
        )

    def shutdown(self) -> None:
        if self._scheduler is None or not self._scheduler.running:
            return
        self._scheduler.shutdown(wait=False)
        _LOG.info("Request rate job stopped")

    def record_request(
        self,
        status_code: int,
        response_time_ms: float,
        method: str = "GET",
        path: str = "/",
        timestamp: Optional[datetime] = None,
        client: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> RequestRecord:
        record = RequestRecord(
            method=method,
            path=path,
            status_code=status_code,
            response_time_ms=response_time_ms,
            timestamp=_as_utc(timestamp),
            client=_truncate_client(client),
        )
        with self._lock:
            self._total += 1
            if _is_success(status_code):
                self._success += 1
            else:
                self._errors += 1
            self._push_sample(response_time_ms)
            self._recent.appendleft(record)
        return record

    def _push_sample(self, value: float) -> None:
        self._samples.append(value)
        evicted = None
        if len(self._samples) > self.sample_capacity:
            evicted = self._samples.popleft()
        if value < self._min:
            self._min = value
        if value > self._max:
            self._max = value
        if evicted is not None and (evicted <= self._min or evicted >= self._max):
            self._min = min(self._samples)
            self._max = max(self._samples)

    def _count_since(self, cutoff: datetime) -> List[RequestRecord]:
        return [r for r in self._recent if r.timestamp >= cutoff]

    def recompute_request_rate(self, now: Optional[datetime] = None) -> int:
        cutoff = _as_utc(now) - timedelta(seconds=RATE_WINDOW_SECONDS)
        with self._lock:
            self._per_minute = len(self._count_since(cutoff))
            if self._per_minute > self._peak_per_minute:
                self._peak_per_minute = self._per_minute
            return self._per_minute

    def get_snapshot(self) -> MetricsSnapshot:
        with self._lock:
            samples = tuple(self._samples)
            return MetricsSnapshot(
                request_total=self._total,
                request_success=self._success,
                request_errors=self._errors,
                requests_per_minute=self._per_minute,
                peak_requests_per_minute=self._peak_per_minute,
                response_time_samples=samples,
                average_response_time_ms=self._average(),
                min_response_time_ms=self._min,
                max_response_time_ms=self._max,
                recent_requests=tuple(self._recent),
            )

    def _average(self) -> float:
        if not self._samples:
            return 0.0
        return math.fsum(self._samples) / len(self._samples)

    def get_health_summary(self) -> HealthSummary:
        with self._lock:
            total = self._total
            success = self._success
            errors = self._errors
            average = self._average()
        ratio = success / total if total else 1.0
        return HealthSummary(
            healthy=ratio >= HEALTHY_SUCCESS_RATIO and average < HEALTHY_MAX_AVERAGE_MS,
            success_rate=_percent(success, total),
            average_response_time_ms=average,
            total_requests=total,
            errors=errors,
        )

    def get_metrics_for_period(
        self, minutes: int = 5, now: Optional[datetime] = None
    ) -> PeriodMetrics:
        now = _as_utc(now)
        with self._lock:
            window = self._count_since(now - timedelta(minutes=minutes))
        success = sum(1 for r in window if _is_success(r.status_code))
        return PeriodMetrics(
            period=f"{minutes} minutes",
            requests=len(window),
            success=success,
            errors=len(window) - success,
            success_rate=_percent(success, len(window)),
            timestamp=now,
        )

    def reset(self) -> None:
        with self._lock:
            self._clear()
        _LOG.info("Metrics reset")
