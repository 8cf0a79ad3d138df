"""Storage adapters for the benchmark backends."""

from storebench.backends.base import StorageAdapter
from storebench.backends.memory import MemoryAdapter
from storebench.backends.mongo import MongoAdapter
from storebench.backends.postgres import PostgresAdapter

__all__ = [
    "MemoryAdapter",
    "MongoAdapter",
    "PostgresAdapter",
    "StorageAdapter",
    "create_adapter",
]

BACKENDS = ("postgres", "mongo", "memory")


def create_adapter(config) -> StorageAdapter:
    """
    Build the adapter selected by ``config.backend``.

    Args:
        config: storebench Config instance

    Raises:
        ValueError: If the backend name is unknown
    """
    if config.backend == "postgres":
        return PostgresAdapter(config.postgres.url, schema=config.postgres.schema_name)
    if config.backend == "mongo":
        return MongoAdapter(
            config.mongo.url,
            database=config.mongo.database,
            max_pool_size=config.mongo.max_pool_size,
        )
    if config.backend == "memory":
        return MemoryAdapter(seed=config.seed.random_seed)
    raise ValueError(
        f"Unknown backend '{config.backend}'. Available: {', '.join(BACKENDS)}"
    )
