"""
storebench - Comparative seeding and query benchmark for document and relational stores.

Provides:
- Synthetic customers, products and orders with referentially valid links
- One seeding orchestrator driving pluggable storage adapters
- A timed per-customer spend aggregation workload
"""

__version__ = "0.1.0"

from storebench.backends import (
    MemoryAdapter,
    MongoAdapter,
    PostgresAdapter,
    StorageAdapter,
    create_adapter,
)
from storebench.config import Config
from storebench.exceptions import (
    EmptyPopulationError,
    InvalidRangeError,
    PersistenceError,
    SchemaError,
    StoreBenchError,
)
from storebench.models import (
    Customer,
    CustomerSpend,
    EntityKind,
    Order,
    OrderLine,
    Product,
    SeedPhase,
    SeedProgress,
)
from storebench.orchestrator import SeedOrchestrator, seed_store
from storebench.timer import BenchmarkResult, BenchmarkTimer

__all__ = [
    "BenchmarkResult",
    "BenchmarkTimer",
    "Config",
    "Customer",
    "CustomerSpend",
    "EmptyPopulationError",
    "EntityKind",
    "InvalidRangeError",
    "MemoryAdapter",
    "MongoAdapter",
    "Order",
    "OrderLine",
    "PersistenceError",
    "PostgresAdapter",
    "Product",
    "SchemaError",
    "SeedOrchestrator",
    "SeedPhase",
    "SeedProgress",
    "StorageAdapter",
    "StoreBenchError",
    "__version__",
    "create_adapter",
    "seed_store",
]
