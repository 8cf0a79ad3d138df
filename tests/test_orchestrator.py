"""Tests for SeedOrchestrator."""

import pytest

from storebench.backends import MemoryAdapter
from storebench.config import SeedSettings
from storebench.exceptions import EmptyPopulationError, InvalidRangeError, PersistenceError
from storebench.generators.entities import MAX_ORDER_LINES, MAX_QUANTITY
from storebench.models import EntityKind, SeedPhase
from storebench.orchestrator import SeedOrchestrator, seed_store


class FailingOrderAdapter(MemoryAdapter):
    """Memory adapter whose order inserts fail from a given batch on."""

    def __init__(self, fail_at_batch: int = 0):
        super().__init__(seed=3)
        self.fail_at_batch = fail_at_batch
        self.order_batches = 0

    def bulk_insert(self, kind, records):
        if kind is EntityKind.ORDER:
            if self.order_batches == self.fail_at_batch:
                raise PersistenceError(kind, "connection reset by peer")
            self.order_batches += 1
        return super().bulk_insert(kind, records)


class PartialOrderAdapter(MemoryAdapter):
    """Memory adapter that keeps the first order of a rejected batch."""

    def bulk_insert(self, kind, records):
        if kind is EntityKind.ORDER and self.count(EntityKind.ORDER) >= 4:
            super().bulk_insert(kind, records[:1])
            raise PersistenceError(kind, "1 of 2 documents rejected", partial=1)
        return super().bulk_insert(kind, records)


@pytest.fixture
def seeded(memory_adapter, small_settings, fields):
    """Memory store after a complete small seed."""
    progress = SeedOrchestrator(memory_adapter, small_settings, fields=fields).run()
    return memory_adapter, progress


def test_small_profile_counts(seeded) -> None:
    """5 customers, 3 products and 10 orders are persisted."""
    adapter, progress = seeded

    assert progress.phase is SeedPhase.COMPLETE
    assert progress.counts() == {"customer": 5, "product": 3, "order": 10}
    assert adapter.count(EntityKind.CUSTOMER) == 5
    assert adapter.count(EntityKind.PRODUCT) == 3
    assert adapter.count(EntityKind.ORDER) == 10


def test_batches_flushed(seeded) -> None:
    """3 customer batches, 2 product batches and 5 order batches of size 2."""
    _, progress = seeded

    assert progress.batches == 3 + 2 + 5


def test_orders_reference_persisted_entities(seeded) -> None:
    """Every order points at a persisted customer and persisted products."""
    adapter, _ = seeded
    customer_ids = {c.id for c in adapter.get_data(EntityKind.CUSTOMER)}
    product_ids = {p.id for p in adapter.get_data(EntityKind.PRODUCT)}

    for order in adapter.get_data(EntityKind.ORDER):
        assert order.customer_id in customer_ids
        assert {line.product_id for line in order.order_details} <= product_ids


def test_order_line_bounds(seeded) -> None:
    """Each order has 1-5 lines; each line a quantity of 1-10."""
    adapter, progress = seeded
    orders = adapter.get_data(EntityKind.ORDER)

    for order in orders:
        assert 1 <= len(order.order_details) <= MAX_ORDER_LINES
        for line in order.order_details:
            assert 1 <= line.quantity <= MAX_QUANTITY

    assert progress.order_lines == sum(len(o.order_details) for o in orders)


def test_unit_price_matches_product_price(seeded) -> None:
    """Each line's unit price equals the product's price at order time."""
    adapter, _ = seeded
    prices = {p.id: p.price for p in adapter.get_data(EntityKind.PRODUCT)}

    for order in adapter.get_data(EntityKind.ORDER):
        for line in order.order_details:
            assert line.unit_price == prices[line.product_id]


def test_customer_emails_unique(seeded) -> None:
    adapter, _ = seeded
    emails = [c.email for c in adapter.get_data(EntityKind.CUSTOMER)]

    assert len(set(emails)) == len(emails)


def test_lookups_counted(seeded) -> None:
    """One customer read per order plus one product read per line."""
    _, progress = seeded

    assert progress.lookups == 10 + progress.order_lines


def test_reset_runs_first(memory_adapter, small_settings) -> None:
    """Each run starts from a reset schema and replaces earlier data."""
    orchestrator = SeedOrchestrator(memory_adapter, small_settings)
    orchestrator.run()
    orchestrator.run()

    assert memory_adapter.reset_count == 2
    assert memory_adapter.count(EntityKind.CUSTOMER) == 5
    assert memory_adapter.count(EntityKind.ORDER) == 10


def test_zero_orders(memory_adapter, small_settings) -> None:
    """An order count of 0 completes with no orders."""
    settings = small_settings.model_copy(update={"order_count": 0})

    progress = SeedOrchestrator(memory_adapter, settings).run()

    assert progress.phase is SeedPhase.COMPLETE
    assert progress.persisted[EntityKind.ORDER] == 0
    assert memory_adapter.count(EntityKind.ORDER) == 0


def test_orders_without_customers(memory_adapter, small_settings) -> None:
    """Orders cannot be assembled when no customers were seeded."""
    settings = small_settings.model_copy(update={"customer_count": 0})
    orchestrator = SeedOrchestrator(memory_adapter, settings)

    with pytest.raises(EmptyPopulationError) as exc_info:
        orchestrator.run()

    assert exc_info.value.kind is EntityKind.CUSTOMER
    assert orchestrator.progress.phase is SeedPhase.FAILED
    assert orchestrator.progress.failed_phase is SeedPhase.ORDERS


def test_persistence_failure_is_annotated(small_settings) -> None:
    """A failed flush reports its phase, batch index and prior counts."""
    adapter = FailingOrderAdapter(fail_at_batch=2)
    orchestrator = SeedOrchestrator(adapter, small_settings)

    with pytest.raises(PersistenceError) as exc_info:
        orchestrator.run()

    error = exc_info.value
    assert error.phase is SeedPhase.ORDERS
    assert error.batch_index == 2
    assert error.persisted == {"customer": 5, "product": 3, "order": 4}
    assert "persisted before failure" in str(error)

    assert orchestrator.progress.phase is SeedPhase.FAILED
    assert orchestrator.progress.failed_phase is SeedPhase.ORDERS
    assert adapter.count(EntityKind.ORDER) == 4


def test_progress_callback(memory_adapter, small_settings) -> None:
    """Progress is reported at interval boundaries and at each phase end."""
    seen = []

    seed_store(
        memory_adapter,
        small_settings,
        on_progress=lambda p: seen.append((p.phase, dict(p.counts()))),
    )

    phases = [phase for phase, _ in seen]
    assert SeedPhase.CUSTOMERS in phases
    assert SeedPhase.PRODUCTS in phases
    assert SeedPhase.ORDERS in phases

    # Intervals of 2 customers: 2, 4, then phase end at 5
    customer_counts = [c["customer"] for phase, c in seen if phase is SeedPhase.CUSTOMERS]
    assert customer_counts == [2, 4, 5]

    # Intervals of 4 orders: 4, 8, then phase end at 10
    order_counts = [c["order"] for phase, c in seen if phase is SeedPhase.ORDERS]
    assert order_counts == [4, 8, 10]


def test_parallel_workers(memory_adapter, small_settings) -> None:
    """Order assembly with several workers keeps every invariant."""
    settings = small_settings.model_copy(update={"workers": 4, "order_count": 25})

    progress = SeedOrchestrator(memory_adapter, settings).run()

    assert progress.persisted[EntityKind.ORDER] == 25
    prices = {p.id: p.price for p in memory_adapter.get_data(EntityKind.PRODUCT)}
    for order in memory_adapter.get_data(EntityKind.ORDER):
        assert 1 <= len(order.order_details) <= MAX_ORDER_LINES
        for line in order.order_details:
            assert line.unit_price == prices[line.product_id]


def test_default_order_count_per_backend(memory_adapter) -> None:
    orchestrator = SeedOrchestrator(memory_adapter, SeedSettings())

    assert orchestrator.order_count == 10_000


def test_partial_batch_counted(small_settings) -> None:
    """Records a backend kept from a rejected batch count as persisted."""
    adapter = PartialOrderAdapter(seed=5)
    orchestrator = SeedOrchestrator(adapter, small_settings)

    with pytest.raises(PersistenceError) as exc_info:
        orchestrator.run()

    error = exc_info.value
    assert error.partial == 1
    assert error.persisted["order"] == 5
    assert "persisted from the failed batch: 1" in str(error)
    assert orchestrator.progress.persisted[EntityKind.ORDER] == adapter.count(EntityKind.ORDER)


def test_parallel_negative_order_count(memory_adapter, small_settings) -> None:
    """Parallel assembly rejects a negative order count like the sequential path."""
    settings = small_settings.model_copy(update={"workers": 2, "order_count": -7})
    orchestrator = SeedOrchestrator(memory_adapter, settings)

    with pytest.raises(InvalidRangeError):
        orchestrator.run()

    assert orchestrator.progress.phase is SeedPhase.FAILED


def test_small_profile_on_every_backend(adapter, small_settings) -> None:
    """5 customers, 3 products and 10 orders seed and query on each store."""
    progress = SeedOrchestrator(adapter, small_settings).run()

    assert progress.phase is SeedPhase.COMPLETE
    assert progress.counts() == {"customer": 5, "product": 3, "order": 10}
    assert adapter.count(EntityKind.CUSTOMER) == 5
    assert adapter.count(EntityKind.PRODUCT) == 3
    assert adapter.count(EntityKind.ORDER) == 10

    rows = adapter.run_benchmark_query(366, "@example.com", 100)
    assert len(rows) <= 5
    assert sum(row.orders_count for row in rows) == 10
    spends = [row.total_spent for row in rows]
    assert spends == sorted(spends, reverse=True)
