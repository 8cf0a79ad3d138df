"""Custom exceptions with helpful error messages."""

from typing import Any


class StoreBenchError(Exception):
    """Base exception for storebench errors."""

    pass


class InvalidRangeError(StoreBenchError):
    """Lower bound of a random range is above its upper bound."""

    def __init__(self, low: Any, high: Any):
        self.low = low
        self.high = high
        super().__init__(
            f"Invalid range: min {low!r} is greater than max {high!r}.\n\n"
            f"Suggestions:\n"
            f"1. Swap the arguments: random_int({high!r}, {low!r})\n"
            f"2. Check configured counts and batch sizes are non-negative"
        )


class EmptyPopulationError(StoreBenchError):
    """Reference requested for an entity kind with nothing persisted yet."""

    def __init__(self, kind: Any):
        self.kind = kind
        label = getattr(kind, "value", kind)
        super().__init__(
            f"Cannot sample a {label}: no {label} entities are persisted.\n\n"
            f"Suggestions:\n"
            f"1. Seed {label} entities before seeding orders\n"
            f"2. Check that {label}_count is greater than 0"
        )


class SchemaError(StoreBenchError):
    """Dropping or recreating the benchmark schema failed."""

    def __init__(self, backend: str, cause: Exception | str):
        self.backend = backend
        self.cause = cause
        super().__init__(
            f"Schema reset failed on '{backend}': {cause}\n\n"
            f"Suggestions:\n"
            f"1. Check the connection URL and credentials\n"
            f"2. Ensure the user may create and drop tables/collections"
        )


class PersistenceError(StoreBenchError):
    """Bulk insert or query failed against the backend.

    The orchestrator annotates the error with the phase that failed, the
    batch index and how many entities were persisted before the failure.
    ``partial`` counts records of the failed batch the backend kept anyway
    (unordered document inserts).
    """

    def __init__(
        self,
        kind: Any,
        cause: Exception | str,
        phase: Any = None,
        batch_index: int | None = None,
        persisted: dict[str, int] | None = None,
        partial: int | None = None,
    ):
        self.kind = kind
        self.cause = cause
        self.phase = phase
        self.batch_index = batch_index
        self.persisted = persisted
        self.partial = partial
        super().__init__(self._build_message())

    def annotate(
        self,
        phase: Any,
        batch_index: int | None,
        persisted: dict[str, int],
    ) -> "PersistenceError":
        """Attach run context and refresh the message."""
        self.phase = phase
        self.batch_index = batch_index
        self.persisted = dict(persisted)
        self.args = (self._build_message(),)
        return self

    def _build_message(self) -> str:
        label = getattr(self.kind, "value", self.kind)
        message = f"Persisting {label} failed: {self.cause}"
        if self.phase is not None:
            message += f"\n  phase: {getattr(self.phase, 'value', self.phase)}"
        if self.batch_index is not None:
            message += f"\n  batch: {self.batch_index}"
        if self.persisted is not None:
            counts = ", ".join(f"{k}={v}" for k, v in self.persisted.items())
            message += f"\n  persisted before failure: {counts}"
        if self.partial:
            message += f"\n  persisted from the failed batch: {self.partial}"
        return message
