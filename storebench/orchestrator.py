"""Seed orchestration across the benchmark entity kinds."""

import logging
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor

from storebench.backends.base import Record, StorageAdapter
from storebench.batching import iter_batches
from storebench.config import SeedSettings
from storebench.exceptions import InvalidRangeError, PersistenceError, StoreBenchError
from storebench.generators import EntityFactory, FieldGenerator
from storebench.models import EntityKind, Order, SeedPhase, SeedProgress
from storebench.resolver import CrossReferenceResolver

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[SeedProgress], None]

PHASE_LABELS = {
    EntityKind.CUSTOMER: "customers",
    EntityKind.PRODUCT: "products",
    EntityKind.ORDER: "orders with order details",
}


class SeedOrchestrator:
    """
    Seed a store in dependency order: customers, products, then orders.

    The run's state lives in ``self.progress`` (current phase and counts so
    far); it stays inspectable after a failure. Any persistence failure ends
    the run: the error is annotated with the phase, batch index and counts
    persisted so far, then re-raised. Nothing is retried or rolled back.

    Example:
        >>> from storebench.backends import MemoryAdapter
        >>> settings = SeedSettings(customer_count=5, product_count=3, order_count=10)
        >>> progress = SeedOrchestrator(MemoryAdapter(), settings).run()
        >>> progress.counts()
        {'customer': 5, 'product': 3, 'order': 10}
    """

    def __init__(
        self,
        adapter: StorageAdapter,
        settings: SeedSettings,
        fields: FieldGenerator | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            adapter: Storage adapter to seed
            settings: Counts, batch sizes and progress intervals
            fields: Scalar generator (defaults to one seeded from settings)
            on_progress: Called with the progress state at every notification
        """
        self.adapter = adapter
        self.settings = settings
        self.fields = fields or FieldGenerator(seed=settings.random_seed)
        self.factory = EntityFactory(self.fields, email_domain=settings.email_domain)
        self.resolver = CrossReferenceResolver(adapter)
        self.on_progress = on_progress
        self.order_count = settings.orders_for(adapter.name)
        self.progress = SeedProgress(backend=adapter.name)

    def run(self) -> SeedProgress:
        """
        Execute the full seed.

        Returns:
            Final progress state (phase COMPLETE)

        Raises:
            SchemaError: If the reset phase fails
            PersistenceError: If a batch flush fails
            EmptyPopulationError: If orders are seeded without customers or products
        """
        self.progress = SeedProgress(backend=self.adapter.name)
        self.progress.start()
        try:
            self._reset()
            self._seed_independent(
                SeedPhase.CUSTOMERS,
                EntityKind.CUSTOMER,
                self.factory.customer,
                self.settings.customer_count,
                self.settings.progress_interval,
            )
            self._seed_independent(
                SeedPhase.PRODUCTS,
                EntityKind.PRODUCT,
                self.factory.product,
                self.settings.product_count,
                self.settings.product_interval(),
            )
            self._seed_orders()
        except StoreBenchError:
            self.progress.finish(SeedPhase.FAILED)
            logger.error(
                f"Seeding {self.adapter.name} failed during "
                f"'{self.progress.failed_phase.value}' after persisting "
                f"{self.progress.counts()}"
            )
            raise

        self.progress.finish(SeedPhase.COMPLETE)
        logger.info(
            f"Data seeding completed on {self.adapter.name}: {self.progress.counts()} "
            f"({self.progress.order_lines} order lines) "
            f"in {self.progress.elapsed_seconds:.2f}s"
        )
        return self.progress

    def _reset(self) -> None:
        self.progress.phase = SeedPhase.RESET
        logger.info(f"Resetting {self.adapter.name} schema...")
        self.adapter.reset_schema()

    def _seed_independent(
        self,
        phase: SeedPhase,
        kind: EntityKind,
        build: Callable[[int], Record],
        count: int,
        interval: int,
    ) -> None:
        self.progress.phase = phase
        logger.info(f"Seeding {PHASE_LABELS[kind]}...")
        batches = iter_batches(build, count, self.settings.batch_size)
        for batch_index, batch in enumerate(batches):
            self._flush(kind, batch, batch_index, interval)
        self._phase_done(kind)

    def _seed_orders(self) -> None:
        self.progress.phase = SeedPhase.ORDERS
        logger.info(f"Seeding {PHASE_LABELS[EntityKind.ORDER]}...")

        workers = self.settings.workers
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                self._flush_orders(self._parallel_order_batches(executor))
        else:
            self._flush_orders(
                iter_batches(self._build_order, self.order_count, self.settings.order_batch_size)
            )
        self._phase_done(EntityKind.ORDER)

    def _flush_orders(self, batches: Iterator[list[Order]]) -> None:
        for batch_index, batch in enumerate(batches):
            self._flush(
                EntityKind.ORDER, batch, batch_index, self.settings.order_progress_interval
            )

    def _parallel_order_batches(self, executor: ThreadPoolExecutor) -> Iterator[list[Order]]:
        """Assemble each batch's orders concurrently; reads are the bottleneck."""
        if self.order_count < 0:
            raise InvalidRangeError(0, self.order_count)
        size = self.settings.order_batch_size
        for start in range(1, self.order_count + 1, size):
            stop = min(start + size, self.order_count + 1)
            yield list(executor.map(self._build_order, range(start, stop)))

    def _build_order(self, seq: int) -> Order:
        """
        Assemble one order from sampled references.

        Costs 1 + line count reference reads. Each line's unit price is the
        sampled product's price at this moment and is never recomputed.
        """
        customer_id = self.resolver.sample_one(EntityKind.CUSTOMER)
        lines = [
            self.factory.order_line(self.resolver.sample_product())
            for _ in range(self.factory.line_count())
        ]
        return self.factory.order(customer_id, lines)

    def _flush(
        self,
        kind: EntityKind,
        batch: list[Record],
        batch_index: int,
        interval: int,
    ) -> None:
        before = self.progress.persisted[kind]
        try:
            inserted = self.adapter.bulk_insert(kind, batch)
        except PersistenceError as exc:
            self.progress.persisted[kind] += exc.partial or 0
            raise exc.annotate(self.progress.phase, batch_index, self.progress.counts())

        self.progress.persisted[kind] += inserted
        self.progress.batches += 1
        self.progress.lookups = self.resolver.lookups
        if kind is EntityKind.ORDER:
            self.progress.order_lines += sum(len(order.order_details) for order in batch)

        done = self.progress.persisted[kind]
        if done // interval > before // interval:
            logger.info(f"Inserted {done} {PHASE_LABELS[kind]}...")
            self._notify()
        else:
            logger.debug(f"Flushed {kind.value} batch {batch_index} ({inserted} records)")

    def _phase_done(self, kind: EntityKind) -> None:
        logger.info(f"Inserted {self.progress.persisted[kind]} {PHASE_LABELS[kind]}.")
        self._notify()

    def _notify(self) -> None:
        if self.on_progress is not None:
            self.on_progress(self.progress)


def seed_store(
    adapter: StorageAdapter,
    settings: SeedSettings,
    on_progress: ProgressCallback | None = None,
) -> SeedProgress:
    """Seed ``adapter`` with the profile described by ``settings``."""
    return SeedOrchestrator(adapter, settings, on_progress=on_progress).run()
