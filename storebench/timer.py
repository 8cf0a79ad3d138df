"""Timing harness for the benchmark query."""

import logging
import statistics
import time
from dataclasses import dataclass, field
from typing import Any

from storebench.backends.base import StorageAdapter
from storebench.config import BenchmarkSettings
from storebench.models import CustomerSpend

logger = logging.getLogger(__name__)


@dataclass
class BenchmarkResult:
    """
    Timings and rows of a benchmark run.

    Attributes:
        backend: Adapter name
        timings_ms: Wall-clock duration of each timed repetition
        rows: Rows returned by the last repetition
    """

    backend: str
    timings_ms: list[float] = field(default_factory=list)
    rows: list[CustomerSpend] = field(default_factory=list)

    @property
    def best_ms(self) -> float:
        return min(self.timings_ms) if self.timings_ms else 0.0

    @property
    def mean_ms(self) -> float:
        return statistics.fmean(self.timings_ms) if self.timings_ms else 0.0

    def to_dict(self, include_rows: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "backend": self.backend,
            "repetitions": len(self.timings_ms),
            "timings_ms": [round(t, 3) for t in self.timings_ms],
            "best_ms": round(self.best_ms, 3),
            "mean_ms": round(self.mean_ms, 3),
            "row_count": len(self.rows),
        }
        if include_rows:
            data["rows"] = [row.to_dict() for row in self.rows]
        return data


class BenchmarkTimer:
    """Run the benchmark query against one adapter and time it."""

    def __init__(self, adapter: StorageAdapter, settings: BenchmarkSettings):
        self.adapter = adapter
        self.settings = settings

    def query(self) -> list[CustomerSpend]:
        return self.adapter.run_benchmark_query(
            self.settings.window_days,
            self.settings.email_suffix,
            self.settings.top_n,
        )

    def run(self) -> BenchmarkResult:
        """
        Run warm-up queries untimed, then the timed repetitions.

        Raises:
            PersistenceError: If the query fails
        """
        result = BenchmarkResult(backend=self.adapter.name)

        for _ in range(self.settings.warmup):
            self.query()

        for repetition in range(1, self.settings.repetitions + 1):
            start = time.perf_counter()
            rows = self.query()
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            result.timings_ms.append(elapsed_ms)
            result.rows = rows
            logger.info(
                f"Aggregation on {self.adapter.name} completed in {elapsed_ms:.1f} ms "
                f"(run {repetition}/{self.settings.repetitions}, {len(rows)} rows)"
            )

        return result
