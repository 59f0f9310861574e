"""Scheduling metrics and operation timing"""

import logging
import threading
import time
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger(__name__)

SCHEDULING_OUTCOMES = ("success", "fallback", "error")


class SchedulingMetrics:
    """Counters for slot searches, cache usage and preference access"""

    def __init__(self):
        self._lock = threading.Lock()
        self.scheduling = {
            "total": 0,
            "successful": 0,
            "fallbacks": 0,
            "errors": 0,
            "average_duration_ms": 0.0,
        }
        self.cache_hits: dict[str, int] = defaultdict(int)
        self.cache_misses: dict[str, int] = defaultdict(int)
        self.preferences = {"fetches": 0, "updates": 0, "errors": 0}

    def track_scheduling(self, outcome: str, duration_ms: float) -> None:
        if outcome not in SCHEDULING_OUTCOMES:
            raise ValueError(f"Unknown scheduling outcome: {outcome}")

        with self._lock:
            stats = self.scheduling
            stats["total"] += 1
            if outcome == "success":
                stats["successful"] += 1
            elif outcome == "fallback":
                stats["fallbacks"] += 1
            else:
                stats["errors"] += 1
            # Running mean over all tracked searches
            stats["average_duration_ms"] += (
                duration_ms - stats["average_duration_ms"]
            ) / stats["total"]

    def track_cache(self, cache_name: str, hit: bool) -> None:
        with self._lock:
            if hit:
                self.cache_hits[cache_name] += 1
            else:
                self.cache_misses[cache_name] += 1

    def track_preferences(self, event: str) -> None:
        with self._lock:
            self.preferences[event] += 1

    @contextmanager
    def track_operation(self, operation_name: str) -> Iterator[None]:
        """Context manager to time a specific operation"""
        start_time = time.perf_counter()
        logger.debug(f"Starting operation: {operation_name}")

        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(f"Operation '{operation_name}' completed in {duration_ms:.2f}ms")

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "scheduling": dict(self.scheduling),
                "cache_hits": dict(self.cache_hits),
                "cache_misses": dict(self.cache_misses),
                "preferences": dict(self.preferences),
            }
