"""
Operation metrics for REALM_STORE.

Each backend call made through a ``BoundStore`` is recorded as
``store.<operation>`` together with its duration, its outcome and the
backend/realm/table it ran against. Stats are kept in process memory.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

Tags = tuple[tuple[str, str], ...]


@dataclass
class OperationMetrics:
    """Running stats for one operation under one set of tags."""

    operation_name: str
    tags: Tags = ()
    count: int = 0
    error_count: int = 0
    durations_ms: list[float] = field(default_factory=list, repr=False)
    last_execution: datetime | None = None

    @property
    def label(self) -> str:
        """``store.filter[backend=mongodb,realm=a]`` style key."""
        if not self.tags:
            return self.operation_name
        return f"{self.operation_name}[{','.join(f'{k}={v}' for k, v in self.tags)}]"

    def record(self, duration_ms: float, success: bool) -> None:
        self.count += 1
        self.error_count += 0 if success else 1
        self.durations_ms.append(duration_ms)
        self.last_execution = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        durations = self.durations_ms
        return {
            "operation": self.operation_name,
            "tags": dict(self.tags),
            "count": self.count,
            "avg_duration_ms": round(sum(durations) / len(durations), 2) if durations else 0.0,
            "min_duration_ms": round(min(durations), 2) if durations else 0.0,
            "max_duration_ms": round(max(durations), 2) if durations else 0.0,
            "error_count": self.error_count,
            "error_rate_percent": (
                round(self.error_count * 100 / self.count, 2) if self.count else 0.0
            ),
            "last_execution": self.last_execution.isoformat() if self.last_execution else None,
        }


class MetricsCollector:
    """
    Thread-safe collector bounded to ``max_metrics`` tag sets.

    The least recently recorded tag set is dropped when the bound is hit.
    Only the last ``max_samples`` durations of each tag set are kept.
    """

    def __init__(self, max_metrics: int = 10000, max_samples: int = 1000):
        self._entries: OrderedDict[tuple[str, Tags], OperationMetrics] = OrderedDict()
        self._lock = threading.Lock()
        self._max_metrics = max_metrics
        self._max_samples = max_samples

    def record_operation(
        self, operation_name: str, duration_ms: float, success: bool = True, **tags: Any
    ) -> None:
        """
        Record one execution of ``operation_name``.

        Args:
            operation_name: e.g. "store.filter"
            duration_ms: Duration in milliseconds
            success: Whether the call completed without error
            **tags: backend, realm, table
        """
        key = (operation_name, tuple(sorted((k, str(v)) for k, v in tags.items())))
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None:
                if len(self._entries) >= self._max_metrics:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug(f"Evicting metrics for {evicted[0]}")
                entry = OperationMetrics(operation_name=operation_name, tags=key[1])
            entry.record(duration_ms, success)
            del entry.durations_ms[: -self._max_samples]
            self._entries[key] = entry

    def get_metrics(self, operation_name: str | None = None) -> dict[str, Any]:
        """Snapshot of all entries, or of those for ``operation_name``."""
        with self._lock:
            entries = [
                e
                for e in self._entries.values()
                if operation_name is None or e.operation_name == operation_name
            ]
            snapshot = {e.label: e.to_dict() for e in entries}
        return {
            "timestamp": datetime.now().isoformat(),
            "metrics": snapshot,
            "total_operations": sum(e["count"] for e in snapshot.values()),
        }

    def get_operation_count(self, operation_name: str) -> int:
        return self._sum(operation_name, "count")

    def get_error_count(self, operation_name: str) -> int:
        return self._sum(operation_name, "error_count")

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def _sum(self, operation_name: str, attr: str) -> int:
        with self._lock:
            return sum(
                getattr(e, attr)
                for (name, _), e in self._entries.items()
                if name == operation_name
            )


_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """The process-wide collector used by ``BoundStore``."""
    return _collector


def record_operation(
    operation_name: str, duration_ms: float, success: bool = True, **tags: Any
) -> None:
    _collector.record_operation(operation_name, duration_ms, success, **tags)
