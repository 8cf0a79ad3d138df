"""Tests for iter_batches."""

import pytest

from storebench.batching import iter_batches
from storebench.exceptions import InvalidRangeError


def test_batches_respect_size() -> None:
    """Every batch holds at most batch_size records; the last may be smaller."""
    batches = list(iter_batches(lambda seq: seq, count=7, batch_size=3))

    assert [len(b) for b in batches] == [3, 3, 1]


def test_total_matches_count() -> None:
    """Total records across batches equals the target count exactly."""
    batches = list(iter_batches(lambda seq: seq, count=1000, batch_size=64))

    assert sum(len(b) for b in batches) == 1000


def test_sequence_numbers_are_contiguous() -> None:
    """Factory receives 1-based, contiguous sequence numbers."""
    flat = [seq for batch in iter_batches(lambda seq: seq, 5, 2) for seq in batch]

    assert flat == [1, 2, 3, 4, 5]


def test_custom_start() -> None:
    """Sequence numbers begin at start."""
    batches = list(iter_batches(lambda seq: seq, 3, 10, start=101))

    assert batches == [[101, 102, 103]]


def test_zero_count_yields_nothing() -> None:
    """Count of 0 is an empty sequence of batches, not an error."""
    assert list(iter_batches(lambda seq: seq, 0, 10)) == []


def test_batches_are_lazy() -> None:
    """Records are built only when their batch is requested."""
    built = []

    def factory(seq: int) -> int:
        built.append(seq)
        return seq

    batches = iter_batches(factory, count=10, batch_size=4)
    assert built == []

    next(batches)
    assert built == [1, 2, 3, 4]


@pytest.mark.parametrize(("count", "batch_size"), [(-1, 10), (10, 0)])
def test_invalid_arguments(count: int, batch_size: int) -> None:
    """Negative counts and empty batches are rejected."""
    with pytest.raises(InvalidRangeError):
        list(iter_batches(lambda seq: seq, count, batch_size))
