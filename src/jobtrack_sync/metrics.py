"""
metrics.py - Observability for synchronization

Provides:
- Prometheus-compatible counters, gauges and histograms
- Structured JSON logging
- SyncLogger with one method per sync event
"""

import json
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class MetricValue:
    """Single metric value with labels."""
    name: str
    value: float
    labels: Dict[str, str] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


# =============================================================================
# Metric Collectors
# =============================================================================

class _LabeledMetric:
    def __init__(self, name: str, help_text: str, labels: Optional[List[str]] = None):
        self.name = name
        self.help = help_text
        self.labels = labels or []
        self._values: Dict[tuple, float] = {}
        self._lock = threading.Lock()

    def get(self, **label_values) -> float:
        """Get current value."""
        key = self._label_key(label_values)
        with self._lock:
            return self._values.get(key, 0)

    def collect(self) -> List[MetricValue]:
        """Collect all values for export."""
        with self._lock:
            return [
                MetricValue(
                    name=self.name,
                    value=value,
                    labels=dict(zip(self.labels, key))
                )
                for key, value in self._values.items()
            ]

    def reset(self) -> None:
        with self._lock:
            self._values.clear()

    def _label_key(self, label_values: dict) -> tuple:
        return tuple(str(label_values.get(label, "")) for label in self.labels)


class Counter(_LabeledMetric):
    """Prometheus-style counter metric."""

    def inc(self, value: float = 1, **label_values) -> None:
        if value < 0:
            raise ValueError("Counters can only increase")
        key = self._label_key(label_values)
        with self._lock:
            self._values[key] = self._values.get(key, 0) + value


class Gauge(_LabeledMetric):
    """Prometheus-style gauge metric."""

    def set(self, value: float, **label_values) -> None:
        key = self._label_key(label_values)
        with self._lock:
            self._values[key] = value


class Histogram:
    """Prometheus-style histogram metric."""

    DEFAULT_BUCKETS = (
        0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5,
        0.75, 1.0, 2.5, 5.0, 7.5, 10.0, float('inf')
    )

    def __init__(
        self,
        name: str,
        help_text: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[tuple] = None
    ):
        self.name = name
        self.help = help_text
        self.labels = labels or []
        self.buckets = buckets or self.DEFAULT_BUCKETS
        self._values: Dict[tuple, dict] = {}
        self._lock = threading.Lock()

    def observe(self, value: float, **label_values) -> None:
        key = tuple(str(label_values.get(label, "")) for label in self.labels)

        with self._lock:
            if key not in self._values:
                self._values[key] = {
                    "count": 0,
                    "sum": 0.0,
                    "buckets": {b: 0 for b in self.buckets}
                }

            data = self._values[key]
            data["count"] += 1
            data["sum"] += value

            for bucket in self.buckets:
                if value <= bucket:
                    data["buckets"][bucket] += 1

    def count(self, **label_values) -> int:
        key = tuple(str(label_values.get(label, "")) for label in self.labels)
        with self._lock:
            data = self._values.get(key)
            return data["count"] if data else 0

    def collect(self) -> List[MetricValue]:
        results = []

        with self._lock:
            for key, data in self._values.items():
                labels = dict(zip(self.labels, key))
                results.append(MetricValue(name=f"{self.name}_sum", value=data["sum"], labels=labels))
                results.append(MetricValue(name=f"{self.name}_count", value=data["count"], labels=labels))
                for le, count in data["buckets"].items():
                    results.append(MetricValue(
                        name=f"{self.name}_bucket",
                        value=count,
                        labels={**labels, "le": "+Inf" if le == float('inf') else str(le)}
                    ))

        return results

    def reset(self) -> None:
        with self._lock:
            self._values.clear()


# =============================================================================
# Metrics Registry
# =============================================================================

class MetricsRegistry:
    """Process-wide metrics registry."""

    def __init__(self, prefix: str = "jobtrack_sync"):
        self.prefix = prefix
        self._metrics: Dict[str, Counter | Gauge | Histogram] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, help_text: str, labels: Optional[List[str]] = None) -> Counter:
        """Register or get a counter metric."""
        return self._register(name, lambda full: Counter(full, help_text, labels))

    def gauge(self, name: str, help_text: str, labels: Optional[List[str]] = None) -> Gauge:
        """Register or get a gauge metric."""
        return self._register(name, lambda full: Gauge(full, help_text, labels))

    def histogram(
        self,
        name: str,
        help_text: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[tuple] = None
    ) -> Histogram:
        """Register or get a histogram metric."""
        return self._register(name, lambda full: Histogram(full, help_text, labels, buckets))

    def _register(self, name, factory):
        full_name = f"{self.prefix}_{name}"
        with self._lock:
            if full_name not in self._metrics:
                self._metrics[full_name] = factory(full_name)
            return self._metrics[full_name]

    def collect_all(self) -> List[MetricValue]:
        results = []
        with self._lock:
            metrics = list(self._metrics.values())
        for metric in metrics:
            results.extend(metric.collect())
        return results

    def reset(self) -> None:
        """Zero every metric; registrations are kept."""
        with self._lock:
            metrics = list(self._metrics.values())
        for metric in metrics:
            metric.reset()

    def export_prometheus(self) -> str:
        """Export metrics in Prometheus text format."""
        lines = []

        with self._lock:
            metrics = list(self._metrics.values())
        for metric in metrics:
            kind = type(metric).__name__.lower()
            lines.append(f"# HELP {metric.name} {metric.help}")
            lines.append(f"# TYPE {metric.name} {kind}")
            for value in metric.collect():
                if value.labels:
                    label_str = ",".join(f'{k}="{v}"' for k, v in value.labels.items())
                    lines.append(f"{value.name}{{{label_str}}} {value.value}")
                else:
                    lines.append(f"{value.name} {value.value}")

        return "\n".join(lines)


# =============================================================================
# Pre-defined Sync Metrics
# =============================================================================

_registry = MetricsRegistry()

sync_runs_total = _registry.counter(
    "runs_total",
    "Full sync runs by outcome",
    labels=["result"]
)

rows_pushed_total = _registry.counter(
    "rows_pushed_total",
    "Local rows confirmed by the remote store",
    labels=["kind"]
)

rows_pulled_total = _registry.counter(
    "rows_pulled_total",
    "Remote documents written to the local store",
    labels=["kind"]
)

sync_duration_seconds = _registry.histogram(
    "duration_seconds",
    "Full sync duration in seconds",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float('inf'))
)

pending_rows = _registry.gauge(
    "pending_rows",
    "Local rows waiting to be pushed",
    labels=["kind"]
)


def get_registry() -> MetricsRegistry:
    """Get the process-wide metrics registry."""
    return _registry


# =============================================================================
# Structured Logging
# =============================================================================

_RESERVED_ATTRS = frozenset((
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName'
))


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra
        self._hostname = os.environ.get("HOSTNAME", "unknown")

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self._hostname
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            for key, value in record.__dict__.items():
                if key not in _RESERVED_ATTRS:
                    log_data[key] = value

        return json.dumps(log_data, default=str)


class SyncLogger:
    """
    Structured logger for sync runs.

    Each method logs one event with machine-readable extras
    and updates the matching metrics.
    """

    def __init__(self, name: str = "jobtrack_sync.sync"):
        self._logger = logging.getLogger(name)

    def sync_started(self, user_id: str, since_ms: int, remote: str) -> None:
        self._logger.info(
            f"Sync started since={since_ms}",
            extra={
                "event": "sync_started",
                "user_id": user_id,
                "since_ms": since_ms,
                "remote": remote
            }
        )

    def sync_completed(
        self,
        user_id: str,
        pushed: Dict[str, int],
        pulled: Dict[str, int],
        skipped: int,
        duration_ms: float
    ) -> None:
        self._logger.info(
            f"Sync completed: pushed={sum(pushed.values())}, pulled={sum(pulled.values())}, "
            f"skipped={skipped}",
            extra={
                "event": "sync_completed",
                "user_id": user_id,
                "pushed": pushed,
                "pulled": pulled,
                "skipped": skipped,
                "duration_ms": duration_ms
            }
        )

        sync_runs_total.inc(result="success")
        sync_duration_seconds.observe(duration_ms / 1000)

    def sync_failed(self, user_id: str, phase: str, error: str, duration_ms: float) -> None:
        self._logger.error(
            f"Sync failed during {phase}: {error}",
            extra={
                "event": "sync_failed",
                "user_id": user_id,
                "phase": phase,
                "error": error,
                "duration_ms": duration_ms
            }
        )

        sync_runs_total.inc(result="failed")
        sync_duration_seconds.observe(duration_ms / 1000)

    def conflict_resolved(self, kind: str, record_id: str, local_ms: int, remote_ms: int) -> None:
        """A pulled document met a locally known row; newer timestamp wins."""
        winner = "remote" if remote_ms > local_ms else "local"
        self._logger.debug(
            f"Conflict on {kind}/{record_id}: {winner} wins",
            extra={
                "event": "conflict_resolved",
                "kind": kind,
                "record_id": record_id,
                "local_ms": local_ms,
                "remote_ms": remote_ms,
                "winner": winner
            }
        )

    def document_skipped(self, kind: str, doc_id: Optional[str], error: str) -> None:
        self._logger.warning(
            f"Skipping malformed {kind} document {doc_id}: {error}",
            extra={
                "event": "document_skipped",
                "kind": kind,
                "doc_id": doc_id,
                "error": error
            }
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: Optional[str] = None
) -> None:
    """
    Configure root logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON formatting on the console
        log_file: Optional log file path (always JSON)
    """
    handlers = []

    console = logging.StreamHandler()
    if json_format:
        console.setFormatter(JSONFormatter())
    else:
        console.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
    handlers.append(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=handlers,
        force=True
    )
