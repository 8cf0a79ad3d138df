"""Hand-built records with fixed values for adapter and query tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from storebench.models import Customer, Order, OrderLine, Product


def make_customer(seq: int, created: datetime, domain: str = "example.com") -> Customer:
    return Customer(
        first_name=f"First{seq}",
        last_name=f"Last{seq}",
        email=f"customer{seq}@{domain}",
        created_date=created,
    )


def make_product(seq: int, price: str, created: datetime) -> Product:
    return Product(product_name=f"Product{seq}", price=Decimal(price), created_date=created)


def make_order(customer: Customer, lines: list[tuple[Product, int]], when: datetime) -> Order:
    return Order(
        customer_id=customer.id,
        order_date=when,
        order_details=[
            OrderLine(product_id=product.id, quantity=quantity, unit_price=product.price)
            for product, quantity in lines
        ],
    )


def days_ago(days: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)
