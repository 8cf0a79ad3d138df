"""Tests for BenchmarkTimer."""

from storebench.config import BenchmarkSettings
from storebench.orchestrator import SeedOrchestrator
from storebench.timer import BenchmarkResult, BenchmarkTimer


def test_benchmark_on_seeded_store(memory_adapter, small_settings) -> None:
    """Top customers by spend come back sorted and bounded."""
    SeedOrchestrator(memory_adapter, small_settings).run()
    settings = BenchmarkSettings(window_days=180, email_suffix="@example.com", top_n=100)

    rows = BenchmarkTimer(memory_adapter, settings).query()

    assert len(rows) <= 5
    for row in rows:
        assert row.orders_count >= 1
        assert row.total_spent >= 0
        assert row.email.endswith("@example.com")
    spends = [row.total_spent for row in rows]
    assert spends == sorted(spends, reverse=True)


def test_full_window_includes_every_buyer(memory_adapter, small_settings) -> None:
    """Orders are dated within the past year, so a 366 day window sees them all."""
    SeedOrchestrator(memory_adapter, small_settings).run()
    settings = BenchmarkSettings(window_days=366, top_n=100)

    rows = BenchmarkTimer(memory_adapter, settings).query()

    assert sum(row.orders_count for row in rows) == 10


def test_run_records_each_repetition(memory_adapter, small_settings) -> None:
    SeedOrchestrator(memory_adapter, small_settings).run()
    settings = BenchmarkSettings(repetitions=3, warmup=2)

    result = BenchmarkTimer(memory_adapter, settings).run()

    assert result.backend == "memory"
    assert len(result.timings_ms) == 3
    assert all(t >= 0 for t in result.timings_ms)
    assert result.best_ms <= result.mean_ms


def test_result_to_dict() -> None:
    result = BenchmarkResult(backend="memory", timings_ms=[2.0, 4.0])

    data = result.to_dict()

    assert data["best_ms"] == 2.0
    assert data["mean_ms"] == 3.0
    assert data["repetitions"] == 2
    assert "rows" not in data
    assert result.to_dict(include_rows=True)["rows"] == []


def test_empty_result() -> None:
    result = BenchmarkResult(backend="memory")

    assert result.best_ms == 0.0
    assert result.mean_ms == 0.0
