"""Service counters exposed on the metrics endpoint."""

from __future__ import annotations

import threading
from typing import Any, Dict


class StatsTracker:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats: Dict[str, Any] = {
            "rank_total": 0,
            "rank_err": 0,
            "candidates_total": 0,
            "materials_total": 0,
            "avg_rank_ms": 0.0,
        }

    def record_rank(self, candidate_count: int, duration_ms: float) -> None:
        with self._lock:
            self._stats["rank_total"] += 1
            self._stats["candidates_total"] += max(0, candidate_count)
            # exponential moving average
            self._stats["avg_rank_ms"] = (
                self._stats["avg_rank_ms"] * 0.99 + duration_ms * 0.01
            )

    def record_rank_error(self) -> None:
        with self._lock:
            self._stats["rank_err"] += 1

    def increment_materials(self) -> None:
        with self._lock:
            self._stats["materials_total"] += 1

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._stats)
