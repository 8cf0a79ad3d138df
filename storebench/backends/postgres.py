"""PostgreSQL backend - normalized four-table schema driven through psycopg."""

import logging
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

import psycopg
from psycopg import Connection

from storebench.backends.base import Record, StorageAdapter, window_start
from storebench.exceptions import EmptyPopulationError, PersistenceError, SchemaError
from storebench.models import Customer, CustomerSpend, EntityKind, Order, Product

logger = logging.getLogger(__name__)

# Rows per multi-row INSERT statement (keeps bind parameters well below 65535)
ROWS_PER_STATEMENT = 1000

SAMPLE_COLUMNS = {
    EntityKind.CUSTOMER: ("customers", "customer_id", "first_name, last_name, email, created_date"),
    EntityKind.PRODUCT: ("products", "product_id", "product_name, price, created_date"),
}

COUNT_TABLES = {
    EntityKind.CUSTOMER: "customers",
    EntityKind.PRODUCT: "products",
    EntityKind.ORDER: "orders",
}


class PostgresAdapter(StorageAdapter):
    """
    Relational adapter: customers, products, orders and order_details tables.

    Identities come from IDENTITY columns and are captured with RETURNING.
    Each batch is committed as one transaction; a failed batch is rolled back
    and surfaced as PersistenceError.

    Example:
        adapter = PostgresAdapter("postgresql://localhost/benchmark")
        # or reuse an existing connection:
        adapter = PostgresAdapter(conn, schema="bench")
    """

    name = "postgres"

    def __init__(self, conn_or_url: Connection | str, schema: str = "benchmark"):
        """
        Initialize adapter.

        Args:
            conn_or_url: psycopg connection or PostgreSQL connection URL
            schema: Schema holding the benchmark tables
        """
        if isinstance(conn_or_url, str):
            self.conn = psycopg.connect(conn_or_url)
            self._owns_connection = True
        else:
            self.conn = conn_or_url
            self._owns_connection = False
        self.schema = schema

    def _table(self, name: str) -> str:
        return f"{self.schema}.{name}"

    def schema_statements(self) -> list[str]:
        """DDL recreating the benchmark tables, constraints and indexes."""
        s = self.schema
        return [
            f"CREATE SCHEMA IF NOT EXISTS {s}",
            f"DROP TABLE IF EXISTS {s}.order_details, {s}.orders, {s}.products, "
            f"{s}.customers CASCADE",
            f"""
            CREATE TABLE {s}.customers (
                customer_id INTEGER GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
                first_name VARCHAR(50) NOT NULL,
                last_name VARCHAR(50) NOT NULL,
                email VARCHAR(100) NOT NULL UNIQUE CHECK (email ~ '^.+@.+\\..+$'),
                created_date TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """,
            f"""
            CREATE TABLE {s}.products (
                product_id INTEGER GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
                product_name VARCHAR(100) NOT NULL,
                price NUMERIC(10, 2) NOT NULL CHECK (price >= 0),
                created_date TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """,
            f"""
            CREATE TABLE {s}.orders (
                order_id INTEGER GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
                customer_id INTEGER NOT NULL REFERENCES {s}.customers(customer_id),
                order_date TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """,
            f"""
            CREATE TABLE {s}.order_details (
                order_detail_id INTEGER GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
                order_id INTEGER NOT NULL REFERENCES {s}.orders(order_id),
                product_id INTEGER NOT NULL REFERENCES {s}.products(product_id),
                quantity INTEGER NOT NULL CHECK (quantity > 0),
                unit_price NUMERIC(10, 2) NOT NULL CHECK (unit_price >= 0)
            )
            """,
            f"CREATE INDEX ix_products_product_name ON {s}.products (product_name)",
            f"CREATE INDEX ix_orders_customer_id_order_date "
            f"ON {s}.orders (customer_id, order_date)",
            f"CREATE INDEX ix_order_details_order_id_product_id "
            f"ON {s}.order_details (order_id, product_id)",
            f"CREATE INDEX ix_order_details_product_id ON {s}.order_details (product_id)",
        ]

    def reset_schema(self) -> None:
        try:
            with self.conn.cursor() as cur:
                for statement in self.schema_statements():
                    cur.execute(statement)
            self.conn.commit()
        except psycopg.Error as exc:
            self.conn.rollback()
            raise SchemaError(self.name, exc) from exc
        logger.debug(f"Recreated benchmark tables in schema '{self.schema}'")

    def bulk_insert(self, kind: EntityKind, records: Sequence[Record]) -> int:
        if not records:
            return 0

        try:
            if kind is EntityKind.CUSTOMER:
                ids = self._insert_values(
                    "customers",
                    ("first_name", "last_name", "email", "created_date"),
                    [(c.first_name, c.last_name, c.email, c.created_date) for c in records],
                    "customer_id",
                )
            elif kind is EntityKind.PRODUCT:
                ids = self._insert_values(
                    "products",
                    ("product_name", "price", "created_date"),
                    [(p.product_name, p.price, p.created_date) for p in records],
                    "product_id",
                )
            else:
                ids = self._insert_orders(records)
            self.conn.commit()
        except psycopg.Error as exc:
            self.conn.rollback()
            raise PersistenceError(kind, exc) from exc

        for record, identity in zip(records, ids):
            record.id = identity
        return len(records)

    def _insert_values(
        self,
        table: str,
        columns: tuple[str, ...],
        rows: list[tuple[Any, ...]],
        returning: str | None = None,
    ) -> list[Any]:
        """Insert rows with multi-row INSERT statements, returning identities."""
        single_placeholder = f"({', '.join(['%s'] * len(columns))})"
        returning_clause = f" RETURNING {returning}" if returning else ""

        ids: list[Any] = []
        with self.conn.cursor() as cur:
            for i in range(0, len(rows), ROWS_PER_STATEMENT):
                chunk = rows[i : i + ROWS_PER_STATEMENT]
                placeholders = ", ".join([single_placeholder] * len(chunk))
                sql = (
                    f"INSERT INTO {self._table(table)} ({', '.join(columns)}) "
                    f"VALUES {placeholders}{returning_clause}"
                )
                # Flatten values: [row1_col1, row1_col2, row2_col1, ...]
                values = [value for row in chunk for value in row]
                cur.execute(sql, values)
                if returning:
                    ids.extend(result[0] for result in cur.fetchall())
        return ids

    def _insert_orders(self, orders: Sequence[Order]) -> list[Any]:
        order_ids = self._insert_values(
            "orders",
            ("customer_id", "order_date"),
            [(o.customer_id, o.order_date) for o in orders],
            "order_id",
        )
        lines = [
            (order_id, line.product_id, line.quantity, line.unit_price)
            for order_id, order in zip(order_ids, orders)
            for line in order.order_details
        ]
        self._insert_values(
            "order_details",
            ("order_id", "product_id", "quantity", "unit_price"),
            lines,
        )
        return order_ids

    def sample_record(self, kind: EntityKind) -> Customer | Product:
        table, key, columns = SAMPLE_COLUMNS[kind]
        # Random key between min and max, resolved through the primary key index
        sql = f"""
            SELECT {key}, {columns}
            FROM {self._table(table)}
            WHERE {key} >= (
                SELECT min({key}) + floor(random() * (max({key}) - min({key}) + 1))::int
                FROM {self._table(table)}
            )
            ORDER BY {key}
            LIMIT 1
        """
        try:
            with self.conn.cursor() as cur:
                cur.execute(sql)
                row = cur.fetchone()
        except psycopg.Error as exc:
            self.conn.rollback()
            raise PersistenceError(kind, exc) from exc

        if row is None:
            raise EmptyPopulationError(kind)

        if kind is EntityKind.CUSTOMER:
            return Customer(
                id=row[0], first_name=row[1], last_name=row[2], email=row[3], created_date=row[4]
            )
        return Product(id=row[0], product_name=row[1], price=row[2], created_date=row[3])

    def count(self, kind: EntityKind) -> int:
        with self.conn.cursor() as cur:
            cur.execute(f"SELECT count(*) FROM {self._table(COUNT_TABLES[kind])}")
            return cur.fetchone()[0]

    def run_benchmark_query(
        self,
        window_days: int,
        email_suffix: str,
        top_n: int,
    ) -> list[CustomerSpend]:
        s = self.schema
        sql = f"""
            SELECT
                c.customer_id,
                c.first_name,
                c.last_name,
                c.email,
                COUNT(DISTINCT o.order_id) AS orders_count,
                SUM(od.quantity * od.unit_price) AS total_spent
            FROM {s}.customers AS c
            INNER JOIN {s}.orders AS o
                ON c.customer_id = o.customer_id
            INNER JOIN {s}.order_details AS od
                ON o.order_id = od.order_id
            INNER JOIN {s}.products AS p
                ON od.product_id = p.product_id
            WHERE o.order_date >= %s
                AND c.email LIKE %s
            GROUP BY c.customer_id, c.first_name, c.last_name, c.email
            ORDER BY total_spent DESC
            LIMIT %s
        """
        params = (window_start(window_days), "%" + _escape_like(email_suffix), top_n)
        try:
            with self.conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
            self.conn.commit()
        except psycopg.Error as exc:
            self.conn.rollback()
            raise PersistenceError(EntityKind.ORDER, exc) from exc

        return [
            CustomerSpend(
                customer_id=row[0],
                first_name=row[1],
                last_name=row[2],
                email=row[3],
                orders_count=row[4],
                total_spent=Decimal(row[5]),
            )
            for row in rows
        ]

    def close(self) -> None:
        if self._owns_connection and not self.conn.closed:
            self.conn.close()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
