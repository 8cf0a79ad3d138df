"""Data models and type definitions."""

import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class EntityKind(str, Enum):
    """Top-level entity kinds. Order lines always live inside an order."""

    CUSTOMER = "customer"
    PRODUCT = "product"
    ORDER = "order"


class SeedPhase(str, Enum):
    """Phases of a seeding run, in execution order."""

    PENDING = "pending"
    RESET = "reset"
    CUSTOMERS = "customers"
    PRODUCTS = "products"
    ORDERS = "orders"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class Customer:
    """
    A customer record.

    Attributes:
        first_name: Given name
        last_name: Family name
        email: Unique address derived from the customer's sequence number
        created_date: Creation timestamp within the past year (UTC)
        id: Backend-assigned identity, set after insertion
    """

    first_name: str
    last_name: str
    email: str
    created_date: datetime
    id: Any = None


@dataclass
class Product:
    """
    A product record.

    Attributes:
        product_name: Display name
        price: Non-negative price with two decimal places
        created_date: Creation timestamp within the past year (UTC)
        id: Backend-assigned identity, set after insertion
    """

    product_name: str
    price: Decimal
    created_date: datetime
    id: Any = None


@dataclass
class OrderLine:
    """
    One line of an order.

    ``unit_price`` is a snapshot of the product price taken when the line was
    built; it never tracks later changes to the product.
    """

    product_id: Any
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class Order:
    """
    An order with its embedded lines.

    Attributes:
        customer_id: Identity of an already persisted customer
        order_date: Order timestamp within the past year (UTC)
        order_details: Between one and five order lines
        id: Backend-assigned identity, set after insertion
    """

    customer_id: Any
    order_date: datetime
    order_details: list[OrderLine] = field(default_factory=list)
    id: Any = None

    @property
    def total(self) -> Decimal:
        return sum((line.line_total for line in self.order_details), Decimal("0"))


@dataclass
class CustomerSpend:
    """One row of the benchmark query result."""

    customer_id: Any
    first_name: str
    last_name: str
    email: str
    orders_count: int
    total_spent: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "customer_id": str(self.customer_id),
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "orders_count": self.orders_count,
            "total_spent": str(self.total_spent),
        }


@dataclass
class SeedProgress:
    """
    State carried through a seeding run.

    Attributes:
        backend: Name of the storage adapter being seeded
        phase: Current (or last reached) phase
        persisted: Persisted entity counts keyed by entity kind
        order_lines: Number of order lines persisted with their orders
        lookups: Reference-resolution reads performed while building orders
        batches: Batches flushed to the storage adapter
        failed_phase: Phase that was running when the run failed, if any
    """

    backend: str
    phase: SeedPhase = SeedPhase.PENDING
    persisted: dict[EntityKind, int] = field(
        default_factory=lambda: dict.fromkeys(EntityKind, 0)
    )
    order_lines: int = 0
    lookups: int = 0
    batches: int = 0
    failed_phase: SeedPhase | None = None
    started_at: float | None = None
    finished_at: float | None = None

    def start(self) -> None:
        self.started_at = time.perf_counter()

    def finish(self, phase: SeedPhase) -> None:
        if phase is SeedPhase.FAILED:
            self.failed_phase = self.phase
        self.phase = phase
        self.finished_at = time.perf_counter()

    @property
    def total_persisted(self) -> int:
        return sum(self.persisted.values())

    @property
    def elapsed_seconds(self) -> float:
        if self.started_at is None:
            return 0.0
        end = self.finished_at if self.finished_at is not None else time.perf_counter()
        return end - self.started_at

    def counts(self) -> dict[str, int]:
        """Persisted counts keyed by plain entity names."""
        return {kind.value: count for kind, count in self.persisted.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "backend": self.backend,
            "phase": self.phase.value,
            "failed_phase": self.failed_phase.value if self.failed_phase else None,
            "persisted": self.counts(),
            "total_persisted": self.total_persisted,
            "order_lines": self.order_lines,
            "lookups": self.lookups,
            "batches": self.batches,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }
