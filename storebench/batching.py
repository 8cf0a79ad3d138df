"""Fixed-size batching of generated records."""

from collections.abc import Callable, Iterator
from typing import TypeVar

from storebench.exceptions import InvalidRangeError

T = TypeVar("T")


def iter_batches(
    factory: Callable[[int], T],
    count: int,
    batch_size: int,
    start: int = 1,
) -> Iterator[list[T]]:
    """
    Lazily build ``count`` records in batches of at most ``batch_size``.

    Args:
        factory: Called with each sequence number to build one record
        count: Total number of records to build
        batch_size: Maximum records per batch
        start: First sequence number passed to ``factory``

    Yields:
        Lists of records; only the last one may be shorter than batch_size

    Raises:
        InvalidRangeError: If count is negative or batch_size is below 1

    Example:
        >>> [len(b) for b in iter_batches(str, 5, 2)]
        [2, 2, 1]
    """
    if count < 0:
        raise InvalidRangeError(0, count)
    if batch_size < 1:
        raise InvalidRangeError(1, batch_size)

    end = start + count
    for batch_start in range(start, end, batch_size):
        batch_end = min(batch_start + batch_size, end)
        yield [factory(seq) for seq in range(batch_start, batch_end)]
