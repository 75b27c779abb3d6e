"""
Shared metrics collection for the AURIA access layer.

The collector keeps running request counters plus two ring buffers (recent
durations and recent log entries) that back the monitoring endpoint, and
mirrors every record into Prometheus instruments for scraping.
"""

import math
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

MAX_LOGS = 50
MAX_DURATIONS = 1000


@dataclass(frozen=True)
class LogEntry:
    """One completed HTTP transaction."""

    timestamp: str
    method: str
    path: str
    status: int
    duration: int

    @classmethod
    def create(cls, method: str, path: str, status: int, duration: int) -> "LogEntry":
        """Build an entry stamped with the current UTC time."""
        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return cls(timestamp=timestamp, method=method, path=path, status=status, duration=duration)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MetricsCollector:
    """Process-wide request counters and recent-request ring buffers."""

    def __init__(
        self,
        service_name: str,
        registry: Optional[CollectorRegistry] = None,
        max_logs: int = MAX_LOGS,
        max_durations: int = MAX_DURATIONS,
    ):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self.max_logs = max_logs
        self.max_durations = max_durations
        self._lock = threading.Lock()

        self.total_requests = 0
        self.error_count_4xx = 0
        self.error_count_5xx = 0
        self.rate_limit_hits = 0
        self._durations: Deque[int] = deque(maxlen=max_durations)
        self._logs: Deque[LogEntry] = deque(maxlen=max_logs)

        self._setup_prometheus()

    def _setup_prometheus(self):
        """Set up the Prometheus instruments mirrored by record()."""
        self._http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "status_code"],
            registry=self.registry
        )

        self._http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method"],
            registry=self.registry
        )

        self._rate_limit_hits_total = Counter(
            "rate_limit_hits_total",
            "Total requests rejected by the rate limiter",
            registry=self.registry
        )

    def record(self, entry: LogEntry) -> None:
        """Record a completed request."""
        with self._lock:
            self._logs.append(entry)
            self._durations.append(entry.duration)

            self.total_requests += 1
            if entry.status == 429:
                self.rate_limit_hits += 1
            if 400 <= entry.status < 500:
                self.error_count_4xx += 1
            if entry.status >= 500:
                self.error_count_5xx += 1

        self._http_requests_total.labels(
            method=entry.method,
            status_code=str(entry.status)
        ).inc()
        self._http_request_duration_seconds.labels(method=entry.method).observe(entry.duration / 1000)
        if entry.status == 429:
            self._rate_limit_hits_total.inc()

    def get_metrics(self) -> Dict[str, int]:
        """Return a snapshot of the counters and the average response time."""
        with self._lock:
            if self._durations:
                # Half-up rounding of the mean
                avg_response_time = int(math.floor(sum(self._durations) / len(self._durations) + 0.5))
            else:
                avg_response_time = 0

            return {
                "totalRequests": self.total_requests,
                "errorCount4xx": self.error_count_4xx,
                "errorCount5xx": self.error_count_5xx,
                "rateLimitHits": self.rate_limit_hits,
                "avgResponseTime": avg_response_time,
            }

    def get_logs(self) -> List[LogEntry]:
        """Return the retained log entries, oldest first, as a new list."""
        with self._lock:
            return list(self._logs)

    def reset(self) -> None:
        """Clear counters and ring buffers.

        Prometheus instruments are monotonic and are left untouched.
        """
        with self._lock:
            self._logs.clear()
            self._durations.clear()
            self.total_requests = 0
            self.error_count_4xx = 0
            self.error_count_5xx = 0
            self.rate_limit_hits = 0

    def export(self) -> bytes:
        """Render the Prometheus registry in the text exposition format."""
        return generate_latest(self.registry)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
