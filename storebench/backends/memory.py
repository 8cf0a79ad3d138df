"""In-memory backend for testing seeding and queries without a database."""

import copy
import random
import threading
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from storebench.backends.base import Record, StorageAdapter, window_start
from storebench.exceptions import EmptyPopulationError, PersistenceError
from storebench.models import Customer, CustomerSpend, EntityKind, Order, Product


class MemoryAdapter(StorageAdapter):
    """
    In-memory adapter that simulates a store.

    Simulates database behavior:
    - Generates identities (sequential integers starting from 1 per kind)
    - Validates the UNIQUE email constraint and customer/product references
    - Stores copies of inserted records, so callers cannot mutate them later

    Use case: fast unit tests, dry runs, prototyping seed logic.
    """

    name = "memory"

    def __init__(self, seed: int | None = None):
        """Initialize memory adapter with empty state."""
        self._lock = threading.Lock()
        self._random = random.Random(seed)
        self._data: dict[EntityKind, list[Record]] = {}
        self._index: dict[EntityKind, dict[Any, Record]] = {}
        self._emails: set[str] = set()
        self._sequences: dict[EntityKind, int] = {}
        self.reset_count = 0

    def reset_schema(self) -> None:
        with self._lock:
            self._data = {kind: [] for kind in EntityKind}
            self._index = {kind: {} for kind in EntityKind}
            self._emails = set()
            self._sequences = dict.fromkeys(EntityKind, 1)
            self.reset_count += 1

    def bulk_insert(self, kind: EntityKind, records: Sequence[Record]) -> int:
        if not records:
            return 0

        with self._lock:
            if kind not in self._data:
                raise PersistenceError(kind, "schema not initialised; call reset_schema()")

            # Validate the whole batch before storing anything
            batch_emails: set[str] = set()
            for record in records:
                self._validate(kind, record, batch_emails)

            for record in records:
                record.id = self._sequences[kind]
                self._sequences[kind] += 1
                stored = copy.deepcopy(record)
                self._data[kind].append(stored)
                self._index[kind][stored.id] = stored
                if kind is EntityKind.CUSTOMER:
                    self._emails.add(stored.email)

        return len(records)

    def _validate(self, kind: EntityKind, record: Record, batch_emails: set[str]) -> None:
        if kind is EntityKind.CUSTOMER:
            if "@" not in record.email:
                raise PersistenceError(kind, f"invalid email {record.email!r}")
            if record.email in self._emails or record.email in batch_emails:
                raise PersistenceError(
                    kind, f"duplicate key value violates unique email {record.email!r}"
                )
            batch_emails.add(record.email)
        elif kind is EntityKind.PRODUCT:
            if record.price < 0:
                raise PersistenceError(kind, f"negative price {record.price}")
        elif kind is EntityKind.ORDER:
            if record.customer_id not in self._index[EntityKind.CUSTOMER]:
                raise PersistenceError(kind, f"unknown customer {record.customer_id!r}")
            if not record.order_details:
                raise PersistenceError(kind, "order has no order details")
            for line in record.order_details:
                if line.product_id not in self._index[EntityKind.PRODUCT]:
                    raise PersistenceError(kind, f"unknown product {line.product_id!r}")
                if line.quantity < 1 or line.unit_price < 0:
                    raise PersistenceError(kind, f"invalid order line {line!r}")

    def sample_record(self, kind: EntityKind) -> Customer | Product:
        with self._lock:
            population = self._data.get(kind) or []
            if not population:
                raise EmptyPopulationError(kind)
            return copy.copy(self._random.choice(population))

    def count(self, kind: EntityKind) -> int:
        with self._lock:
            return len(self._data.get(kind, []))

    def get_data(self, kind: EntityKind) -> list[Record]:
        """
        Get copies of stored records for inspection.

        Args:
            kind: Entity kind

        Returns:
            Stored records in insertion order
        """
        with self._lock:
            return copy.deepcopy(self._data.get(kind, []))

    def run_benchmark_query(
        self,
        window_days: int,
        email_suffix: str,
        top_n: int,
    ) -> list[CustomerSpend]:
        cutoff = window_start(window_days)
        with self._lock:
            customers = self._index.get(EntityKind.CUSTOMER, {})
            products = self._index.get(EntityKind.PRODUCT, {})
            orders: list[Order] = list(self._data.get(EntityKind.ORDER, []))

            order_ids: dict[Any, set[Any]] = {}
            totals: dict[Any, Decimal] = {}
            for order in orders:
                if order.order_date < cutoff:
                    continue
                customer = customers.get(order.customer_id)
                if customer is None or not customer.email.endswith(email_suffix):
                    continue
                for line in order.order_details:
                    if line.product_id not in products:
                        continue
                    order_ids.setdefault(customer.id, set()).add(order.id)
                    totals[customer.id] = (
                        totals.get(customer.id, Decimal("0")) + line.line_total
                    )

            rows = [
                CustomerSpend(
                    customer_id=customer_id,
                    first_name=customers[customer_id].first_name,
                    last_name=customers[customer_id].last_name,
                    email=customers[customer_id].email,
                    orders_count=len(order_ids[customer_id]),
                    total_spent=total,
                )
                for customer_id, total in totals.items()
            ]

        rows.sort(key=lambda row: (-row.total_spent, row.customer_id))
        return rows[:top_n]
