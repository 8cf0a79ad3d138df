"""Abstract storage adapter shared by all benchmark backends."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

from storebench.models import Customer, CustomerSpend, EntityKind, Order, Product

Record = Customer | Product | Order


class StorageAdapter(ABC):
    """
    Interface every backend implements to be seeded and benchmarked.

    Adapters are the only components that talk to a store. They translate
    the operations below into backend-native calls while keeping the same
    semantics, so one orchestrator drives every backend.
    """

    name: str = "abstract"

    @abstractmethod
    def reset_schema(self) -> None:
        """
        Drop and recreate all containers, constraints and indexes.

        Must be idempotent: calling it twice leaves an empty, fully indexed
        store both times.

        Raises:
            SchemaError: If the schema cannot be created
        """
        pass

    @abstractmethod
    def bulk_insert(self, kind: EntityKind, records: Sequence[Record]) -> int:
        """
        Insert records in as few round trips as the backend allows.

        Backend identities are assigned onto ``record.id``.

        Args:
            kind: Kind of every record in the sequence
            records: Records to insert

        Returns:
            Number of records inserted

        Raises:
            PersistenceError: If the backend rejects the insert
        """
        pass

    @abstractmethod
    def sample_record(self, kind: EntityKind) -> Customer | Product:
        """
        Return one uniformly sampled persisted customer or product.

        Raises:
            EmptyPopulationError: If nothing of that kind is persisted
        """
        pass

    @abstractmethod
    def count(self, kind: EntityKind) -> int:
        """Number of persisted entities of ``kind``."""
        pass

    @abstractmethod
    def run_benchmark_query(
        self,
        window_days: int,
        email_suffix: str,
        top_n: int,
    ) -> list[CustomerSpend]:
        """
        Per-customer order count and spend over a trailing window.

        Joins orders to customers and order lines to products, keeps orders
        placed within the last ``window_days`` by customers whose email ends
        with ``email_suffix``, groups by customer counting distinct orders
        and summing quantity * unit_price, and returns the ``top_n`` rows by
        total spent, highest first.

        Raises:
            PersistenceError: If the query fails
        """
        pass

    def sample_identity(self, kind: EntityKind) -> Any:
        """Identity of one uniformly sampled persisted entity."""
        return self.sample_record(kind).id

    def close(self) -> None:
        """Release connections. Override if cleanup needed."""
        pass

    def __enter__(self) -> "StorageAdapter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def window_start(window_days: int, now: datetime | None = None) -> datetime:
    """Cutoff timestamp for the trailing benchmark window."""
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=window_days)
