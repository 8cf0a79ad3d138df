"""MongoDB backend - document schema with order lines embedded in orders."""

import logging
import re
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import BulkWriteError, PyMongoError

from storebench.backends.base import Record, StorageAdapter, window_start
from storebench.exceptions import EmptyPopulationError, PersistenceError, SchemaError
from storebench.models import Customer, CustomerSpend, EntityKind, Order, Product

logger = logging.getLogger(__name__)

COLLECTIONS = {
    EntityKind.CUSTOMER: "Customers",
    EntityKind.PRODUCT: "Products",
    EntityKind.ORDER: "Orders",
}

VALIDATORS: dict[EntityKind, dict[str, Any]] = {
    EntityKind.CUSTOMER: {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["firstName", "lastName", "email", "createdDate"],
            "properties": {
                "firstName": {"bsonType": "string"},
                "lastName": {"bsonType": "string"},
                "email": {"bsonType": "string", "pattern": r"^.+@.+\..+$"},
                "createdDate": {"bsonType": "date"},
            },
        }
    },
    EntityKind.PRODUCT: {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["productName", "price", "createdDate"],
            "properties": {
                "productName": {"bsonType": "string"},
                "price": {"bsonType": "number", "minimum": 0},
                "createdDate": {"bsonType": "date"},
            },
        }
    },
    EntityKind.ORDER: {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["customerId", "orderDate", "orderDetails"],
            "properties": {
                "customerId": {"bsonType": "objectId"},
                "orderDate": {"bsonType": "date"},
                "orderDetails": {
                    "bsonType": "array",
                    "minItems": 1,
                    "items": {
                        "bsonType": "object",
                        "required": ["productId", "quantity", "unitPrice"],
                        "properties": {
                            "productId": {"bsonType": "objectId"},
                            "quantity": {"bsonType": "int", "minimum": 1},
                            "unitPrice": {"bsonType": "number", "minimum": 0},
                        },
                    },
                },
            },
        }
    },
}

# (kind, keys, options)
INDEXES: list[tuple[EntityKind, list[tuple[str, int]], dict[str, Any]]] = [
    (EntityKind.CUSTOMER, [("email", ASCENDING)], {"unique": True}),
    (EntityKind.PRODUCT, [("productName", ASCENDING)], {}),
    (EntityKind.ORDER, [("customerId", ASCENDING), ("orderDate", ASCENDING)], {}),
    (EntityKind.ORDER, [("orderDetails.productId", ASCENDING)], {}),
]


def to_price(value: Any) -> Decimal:
    """Stored double back to a two-place Decimal."""
    return Decimal(str(value)).quantize(Decimal("0.01"))


def to_document(kind: EntityKind, record: Record) -> dict[str, Any]:
    if kind is EntityKind.CUSTOMER:
        return {
            "firstName": record.first_name,
            "lastName": record.last_name,
            "email": record.email,
            "createdDate": record.created_date,
        }
    if kind is EntityKind.PRODUCT:
        return {
            "productName": record.product_name,
            "price": float(record.price),
            "createdDate": record.created_date,
        }
    return {
        "customerId": record.customer_id,
        "orderDate": record.order_date,
        "orderDetails": [
            {
                "productId": line.product_id,
                "quantity": line.quantity,
                "unitPrice": float(line.unit_price),
            }
            for line in record.order_details
        ],
    }


def from_document(kind: EntityKind, doc: dict[str, Any]) -> Customer | Product:
    if kind is EntityKind.CUSTOMER:
        return Customer(
            id=doc["_id"],
            first_name=doc["firstName"],
            last_name=doc["lastName"],
            email=doc["email"],
            created_date=doc["createdDate"],
        )
    return Product(
        id=doc["_id"],
        product_name=doc["productName"],
        price=to_price(doc["price"]),
        created_date=doc["createdDate"],
    )


class MongoAdapter(StorageAdapter):
    """
    Document adapter: Customers, Products and Orders collections.

    Orders embed their order lines as ``orderDetails``. Collections are
    created with ``$jsonSchema`` validators; references are resolved with
    the ``$sample`` aggregation stage.

    Example:
        adapter = MongoAdapter("mongodb://localhost:27017", database="BenchmarkDB")
    """

    name = "mongo"

    def __init__(
        self,
        client_or_url: MongoClient | str,
        database: str = "BenchmarkDB",
        max_pool_size: int = 4,
    ):
        """
        Initialize adapter.

        Args:
            client_or_url: MongoClient or MongoDB connection URL
            database: Database holding the benchmark collections
            max_pool_size: Connection pool bound when the adapter owns the client
        """
        if isinstance(client_or_url, str):
            self.client = MongoClient(client_or_url, maxPoolSize=max_pool_size, tz_aware=True)
            self._owns_client = True
        else:
            self.client = client_or_url
            self._owns_client = False
        self.db: Database = self.client[database]

    def collection(self, kind: EntityKind):
        return self.db[COLLECTIONS[kind]]

    def reset_schema(self) -> None:
        try:
            for kind, name in COLLECTIONS.items():
                self.db.drop_collection(name)
                self.db.create_collection(name, validator=VALIDATORS[kind])
            for kind, keys, options in INDEXES:
                self.collection(kind).create_index(keys, **options)
        except PyMongoError as exc:
            raise SchemaError(self.name, exc) from exc
        logger.debug(f"Recreated benchmark collections in database '{self.db.name}'")

    def bulk_insert(self, kind: EntityKind, records: Sequence[Record]) -> int:
        if not records:
            return 0

        documents = [to_document(kind, record) for record in records]
        try:
            result = self.collection(kind).insert_many(documents, ordered=False)
        except BulkWriteError as exc:
            errors = exc.details.get("writeErrors", [])
            first = errors[0].get("errmsg") if errors else exc
            raise PersistenceError(
                kind,
                f"{len(errors)} of {len(documents)} documents rejected: {first}",
                partial=exc.details.get("nInserted", 0),
            ) from exc
        except PyMongoError as exc:
            raise PersistenceError(kind, exc) from exc

        for record, identity in zip(records, result.inserted_ids):
            record.id = identity
        return len(result.inserted_ids)

    def sample_record(self, kind: EntityKind) -> Customer | Product:
        try:
            cursor = self.collection(kind).aggregate([{"$sample": {"size": 1}}])
            doc = next(cursor, None)
        except PyMongoError as exc:
            raise PersistenceError(kind, exc) from exc

        if doc is None:
            raise EmptyPopulationError(kind)
        return from_document(kind, doc)

    def count(self, kind: EntityKind) -> int:
        return self.collection(kind).count_documents({})

    def benchmark_pipeline(
        self, window_days: int, email_suffix: str, top_n: int
    ) -> list[dict[str, Any]]:
        """Aggregation pipeline computing per-customer order count and spend."""
        return [
            {"$match": {"orderDate": {"$gte": window_start(window_days)}}},
            # Join Orders with Customers
            {
                "$lookup": {
                    "from": COLLECTIONS[EntityKind.CUSTOMER],
                    "localField": "customerId",
                    "foreignField": "_id",
                    "as": "customer",
                }
            },
            {"$unwind": "$customer"},
            {"$match": {"customer.email": {"$regex": re.escape(email_suffix) + "$"}}},
            {"$unwind": "$orderDetails"},
            # Join order details with Products
            {
                "$lookup": {
                    "from": COLLECTIONS[EntityKind.PRODUCT],
                    "localField": "orderDetails.productId",
                    "foreignField": "_id",
                    "as": "product",
                }
            },
            {"$unwind": "$product"},
            {
                "$group": {
                    "_id": "$customer._id",
                    "firstName": {"$first": "$customer.firstName"},
                    "lastName": {"$first": "$customer.lastName"},
                    "email": {"$first": "$customer.email"},
                    "orders": {"$addToSet": "$_id"},
                    "totalSpent": {
                        "$sum": {
                            "$multiply": ["$orderDetails.quantity", "$orderDetails.unitPrice"]
                        }
                    },
                }
            },
            {
                "$project": {
                    "firstName": 1,
                    "lastName": 1,
                    "email": 1,
                    "ordersCount": {"$size": "$orders"},
                    "totalSpent": 1,
                }
            },
            {"$sort": {"totalSpent": -1}},
            {"$limit": top_n},
        ]

    def run_benchmark_query(
        self,
        window_days: int,
        email_suffix: str,
        top_n: int,
    ) -> list[CustomerSpend]:
        if top_n < 1:
            return []

        pipeline = self.benchmark_pipeline(window_days, email_suffix, top_n)
        try:
            docs = list(self.collection(EntityKind.ORDER).aggregate(pipeline))
        except PyMongoError as exc:
            raise PersistenceError(EntityKind.ORDER, exc) from exc

        return [
            CustomerSpend(
                customer_id=doc["_id"],
                first_name=doc["firstName"],
                last_name=doc["lastName"],
                email=doc["email"],
                orders_count=doc["ordersCount"],
                total_spent=to_price(doc["totalSpent"]),
            )
            for doc in docs
        ]

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
