"""Faker-based scalar field generator."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from faker import Faker

from storebench.exceptions import InvalidRangeError

DATE_WINDOW_DAYS = 365
PRICE_MIN = 1
PRICE_MAX = 101
CENTS = Decimal("0.01")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FieldGenerator:
    """
    Generate synthetic scalar values for benchmark entities.

    Every call draws independently from the wrapped Faker instance. Pass
    ``seed`` for a reproducible stream and ``now`` to pin the clock that
    anchors the one-year date window.

    Example:
        >>> fields = FieldGenerator(seed=42)
        >>> fields.random_int(1, 5) in range(1, 6)
        True
    """

    def __init__(
        self,
        seed: int | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        self.fake = Faker()
        if seed is not None:
            self.fake.seed_instance(seed)
        self._now = now or utc_now

    @property
    def random(self):
        """Underlying ``random.Random`` shared with Faker."""
        return self.fake.random

    def random_date(self) -> datetime:
        """Timestamp uniformly distributed over the past year (UTC)."""
        now = self._now()
        return self.fake.date_time_between(
            start_date=now - timedelta(days=DATE_WINDOW_DAYS),
            end_date=now,
            tzinfo=timezone.utc,
        )

    def random_price(self) -> Decimal:
        """Price in [1.00, 101.00] rounded to cents."""
        value = self.random.uniform(PRICE_MIN, PRICE_MAX)
        return Decimal(str(value)).quantize(CENTS)

    def random_int(self, low: int, high: int) -> int:
        """
        Integer uniformly drawn from [low, high].

        Raises:
            InvalidRangeError: If low > high
        """
        if low > high:
            raise InvalidRangeError(low, high)
        return self.fake.random_int(min=low, max=high)

    def first_name(self) -> str:
        return self.fake.first_name()

    def last_name(self) -> str:
        return self.fake.last_name()
