"""Cross-reference resolution for dependent entities."""

import threading
from typing import Any

from storebench.backends.base import StorageAdapter
from storebench.models import EntityKind, Product


class CrossReferenceResolver:
    """
    Supply references to already persisted entities.

    Every call reads from the adapter, so samples are drawn from the
    population persisted at call time rather than a snapshot. Safe to share
    between order-assembly workers.
    """

    def __init__(self, adapter: StorageAdapter):
        self.adapter = adapter
        self._lock = threading.Lock()
        self._lookups = 0

    @property
    def lookups(self) -> int:
        """Number of reference reads performed so far."""
        return self._lookups

    def _count(self) -> None:
        with self._lock:
            self._lookups += 1

    def sample_one(self, kind: EntityKind) -> Any:
        """
        Identity of one uniformly sampled persisted entity.

        Raises:
            EmptyPopulationError: If nothing of that kind is persisted
        """
        self._count()
        return self.adapter.sample_identity(kind)

    def sample_product(self) -> Product:
        """
        One persisted product, including its current price.

        Raises:
            EmptyPopulationError: If no products are persisted
        """
        self._count()
        return self.adapter.sample_record(EntityKind.PRODUCT)
