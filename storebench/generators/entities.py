"""Entity record factory built on top of FieldGenerator."""

from typing import Any

from storebench.generators.fields import FieldGenerator
from storebench.models import Customer, Order, OrderLine, Product

MIN_ORDER_LINES = 1
MAX_ORDER_LINES = 5
MIN_QUANTITY = 1
MAX_QUANTITY = 10


class EntityFactory:
    """
    Assemble generated scalars into entity records.

    Customer emails and product names are derived from a 1-based sequence
    number, so a single run never produces two customers with the same email.

    Example:
        >>> factory = EntityFactory(FieldGenerator(seed=1))
        >>> factory.customer(7).email
        'customer7@example.com'
    """

    def __init__(self, fields: FieldGenerator, email_domain: str = "example.com"):
        self.fields = fields
        self.email_domain = email_domain.lstrip("@")

    def customer(self, seq: int) -> Customer:
        return Customer(
            first_name=self.fields.first_name(),
            last_name=self.fields.last_name(),
            email=f"customer{seq}@{self.email_domain}",
            created_date=self.fields.random_date(),
        )

    def product(self, seq: int) -> Product:
        return Product(
            product_name=f"Product{seq}",
            price=self.fields.random_price(),
            created_date=self.fields.random_date(),
        )

    def line_count(self) -> int:
        return self.fields.random_int(MIN_ORDER_LINES, MAX_ORDER_LINES)

    def order_line(self, product: Product) -> OrderLine:
        """Build a line for ``product``, snapshotting its current price."""
        return OrderLine(
            product_id=product.id,
            quantity=self.fields.random_int(MIN_QUANTITY, MAX_QUANTITY),
            unit_price=product.price,
        )

    def order(self, customer_id: Any, lines: list[OrderLine]) -> Order:
        return Order(
            customer_id=customer_id,
            order_date=self.fields.random_date(),
            order_details=list(lines),
        )
