"""
Entity Generators - synthetic e-commerce records

Produces users, products, orders and order items for the seeding
orchestrator. Generators are pure apart from advancing the Faker random
source: nothing is written anywhere.

Foreign keys are drawn uniformly from the identifier pools passed in the
parameter objects, so some parents end up referenced many times and some
never.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union
from uuid import uuid4

from faker import Faker

ORDER_STATUSES = ("pending", "processing", "completed", "cancelled")

# Inclusive monetary ranges, whole currency units
PRODUCT_PRICE_RANGE = (10, 1000)
ORDER_TOTAL_RANGE = (10, 1000)
ORDER_ITEM_PRICE_RANGE = (5, 500)

PRODUCT_STOCK_RANGE = (0, 1000)
ORDER_ITEM_QUANTITY_RANGE = (1, 5)

PRODUCT_ADJECTIVES = [
    "Small", "Ergonomic", "Rustic", "Intelligent", "Gorgeous", "Incredible",
    "Fantastic", "Practical", "Sleek", "Awesome", "Generic", "Handcrafted",
    "Handmade", "Licensed", "Refined", "Unbranded", "Tasty", "Electronic",
    "Modern", "Recycled", "Luxurious", "Bespoke", "Oriental", "Elegant",
]

PRODUCT_MATERIALS = [
    "Steel", "Wooden", "Concrete", "Plastic", "Cotton", "Granite", "Rubber",
    "Metal", "Soft", "Fresh", "Frozen", "Bronze", "Silk", "Marble", "Gold",
]

PRODUCT_NOUNS = [
    "Chair", "Car", "Computer", "Keyboard", "Mouse", "Bike", "Ball", "Gloves",
    "Pants", "Shirt", "Table", "Shoes", "Hat", "Towels", "Soap", "Tuna",
    "Chicken", "Fish", "Cheese", "Bacon", "Pizza", "Salad", "Sausages", "Chips",
]


class GenerationError(ValueError):
    """Raised when a generator is called with invalid input"""
    pass


class EntityKind(Enum):
    """Entity types in seeding order"""
    USERS = "users"
    PRODUCTS = "products"
    ORDERS = "orders"
    ORDER_ITEMS = "order_items"

    @property
    def table(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def columns(self) -> Tuple[str, ...]:
        return _COLUMNS[self]


_LABELS = {
    EntityKind.USERS: "Users",
    EntityKind.PRODUCTS: "Products",
    EntityKind.ORDERS: "Orders",
    EntityKind.ORDER_ITEMS: "Order Items",
}

_COMMON_COLUMNS = ("id", "created_at", "updated_at")

_COLUMNS = {
    EntityKind.USERS: _COMMON_COLUMNS + ("email", "name", "avatar_url"),
    EntityKind.PRODUCTS: _COMMON_COLUMNS + ("name", "description", "price", "stock"),
    EntityKind.ORDERS: _COMMON_COLUMNS + ("user_id", "status", "total"),
    EntityKind.ORDER_ITEMS: _COMMON_COLUMNS + ("order_id", "product_id", "quantity", "price"),
}


# Records

@dataclass(frozen=True)
class User:
    id: str
    created_at: datetime
    updated_at: datetime
    email: str
    name: str
    avatar_url: Optional[str]


@dataclass(frozen=True)
class Product:
    id: str
    created_at: datetime
    updated_at: datetime
    name: str
    description: Optional[str]
    price: Decimal
    stock: int


@dataclass(frozen=True)
class Order:
    id: str
    created_at: datetime
    updated_at: datetime
    user_id: str
    status: str
    total: Decimal


@dataclass(frozen=True)
class OrderItem:
    id: str
    created_at: datetime
    updated_at: datetime
    order_id: str
    product_id: str
    quantity: int
    price: Decimal


Record = Union[User, Product, Order, OrderItem]


def as_row(kind: EntityKind, record: Record) -> tuple:
    """Record values in the table's column order."""
    return tuple(getattr(record, column) for column in kind.columns)


# Parameter objects

@dataclass(frozen=True)
class UserGenParams:
    kind = EntityKind.USERS


@dataclass(frozen=True)
class ProductGenParams:
    kind = EntityKind.PRODUCTS


@dataclass(frozen=True)
class OrderGenParams:
    user_ids: Sequence[str]
    kind = EntityKind.ORDERS


@dataclass(frozen=True)
class OrderItemGenParams:
    order_ids: Sequence[str]
    product_ids: Sequence[str]
    kind = EntityKind.ORDER_ITEMS


GenParams = Union[UserGenParams, ProductGenParams, OrderGenParams, OrderItemGenParams]

# (count, start_index) -> records, with the parameter object already bound
GenerateFn = Callable[[int, int], List[Record]]


def _now() -> datetime:
    # timestamp columns are naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _check_counts(count: int, start_index: int) -> None:
    if count < 0:
        raise GenerationError(f"count must be >= 0, got {count}")
    if start_index < 0:
        raise GenerationError(f"start_index must be >= 0, got {start_index}")


def _check_pool(name: str, pool: Sequence[str]) -> None:
    if not pool:
        raise GenerationError(f"{name} pool is empty")


class EntityGenerator:
    """
    Synthetic record factory backed by Faker.

    Pass a seed for reproducible field values; identifiers are always
    random UUIDs.
    """

    def __init__(self, faker: Optional[Faker] = None, seed: Optional[int] = None):
        self.fake = faker or Faker()
        if seed is not None:
            self.fake.seed_instance(seed)

    @property
    def random(self):
        return self.fake.random

    def money(self, bounds: Tuple[int, int]) -> Decimal:
        """Two-decimal amount within the inclusive bounds."""
        low, high = bounds
        cents = self.random.randint(low * 100, high * 100)
        return Decimal(cents).scaleb(-2)

    def product_name(self) -> str:
        return " ".join((
            self.random.choice(PRODUCT_ADJECTIVES),
            self.random.choice(PRODUCT_MATERIALS),
            self.random.choice(PRODUCT_NOUNS),
        ))

    def users(self, count: int, start_index: int,
              params: Optional[UserGenParams] = None) -> List[User]:
        """
        Generate users.

        The email local part is prefixed with start_index + position, which
        keeps emails unique across every batch of one run.
        """
        _check_counts(count, start_index)
        records = []
        for i in range(count):
            now = _now()
            records.append(User(
                id=str(uuid4()),
                created_at=now,
                updated_at=now,
                email=f"user.{start_index + i}.{self.fake.email()}",
                name=self.fake.name(),
                avatar_url=self.fake.image_url(width=128, height=128),
            ))
        return records

    def products(self, count: int, start_index: int,
                 params: Optional[ProductGenParams] = None) -> List[Product]:
        _check_counts(count, start_index)
        records = []
        for _ in range(count):
            now = _now()
            records.append(Product(
                id=str(uuid4()),
                created_at=now,
                updated_at=now,
                name=self.product_name(),
                description=self.fake.sentence(nb_words=12),
                price=self.money(PRODUCT_PRICE_RANGE),
                stock=self.random.randint(*PRODUCT_STOCK_RANGE),
            ))
        return records

    def orders(self, count: int, start_index: int, params: OrderGenParams) -> List[Order]:
        _check_counts(count, start_index)
        if count:
            _check_pool("user_ids", params.user_ids)
        records = []
        for _ in range(count):
            now = _now()
            records.append(Order(
                id=str(uuid4()),
                created_at=now,
                updated_at=now,
                user_id=self.random.choice(params.user_ids),
                status=self.random.choice(ORDER_STATUSES),
                total=self.money(ORDER_TOTAL_RANGE),
            ))
        return records

    def order_items(self, count: int, start_index: int,
                    params: OrderItemGenParams) -> List[OrderItem]:
        _check_counts(count, start_index)
        if count:
            _check_pool("order_ids", params.order_ids)
            _check_pool("product_ids", params.product_ids)
        records = []
        for _ in range(count):
            now = _now()
            records.append(OrderItem(
                id=str(uuid4()),
                created_at=now,
                updated_at=now,
                order_id=self.random.choice(params.order_ids),
                product_id=self.random.choice(params.product_ids),
                quantity=self.random.randint(*ORDER_ITEM_QUANTITY_RANGE),
                price=self.money(ORDER_ITEM_PRICE_RANGE),
            ))
        return records

    def generate(self, kind: EntityKind, count: int, start_index: int,
                 params: Optional[GenParams] = None) -> List[Record]:
        """Dispatch on entity kind; params must match the kind."""
        if params is None:
            if kind is EntityKind.USERS:
                params = UserGenParams()
            elif kind is EntityKind.PRODUCTS:
                params = ProductGenParams()
            else:
                raise GenerationError(f"{kind.label} need identifier pools")
        if params.kind is not kind:
            raise GenerationError(
                f"{type(params).__name__} does not match entity kind {kind.name}"
            )

        if kind is EntityKind.USERS:
            return self.users(count, start_index, params)
        if kind is EntityKind.PRODUCTS:
            return self.products(count, start_index, params)
        if kind is EntityKind.ORDERS:
            return self.orders(count, start_index, params)
        return self.order_items(count, start_index, params)

    def bind(self, kind: EntityKind, params: Optional[GenParams] = None) -> GenerateFn:
        """Return a (count, start_index) callable for the batch loader."""
        def generate_fn(count: int, start_index: int) -> List[Record]:
            return self.generate(kind, count, start_index, params)
        return generate_fn
