"""Tests for synthetic entity generation."""

from decimal import Decimal

import pytest

from generators import (
    ORDER_STATUSES,
    EntityGenerator,
    EntityKind,
    GenerationError,
    OrderGenParams,
    OrderItemGenParams,
    ProductGenParams,
    UserGenParams,
    as_row,
)


@pytest.fixture
def gen():
    return EntityGenerator(seed=1234)


def assert_money(value, low, high):
    assert isinstance(value, Decimal)
    assert Decimal(low) <= value <= Decimal(high)
    assert value == value.quantize(Decimal("0.01"))


class TestUsers:
    def test_count_and_unique_ids(self, gen):
        users = gen.users(200, 0)
        assert len(users) == 200
        assert len({u.id for u in users}) == 200

    def test_email_prefix_uses_start_index(self, gen):
        users = gen.users(3, 1000)
        assert [u.email.split(".")[:2] for u in users] == [
            ["user", "1000"], ["user", "1001"], ["user", "1002"]
        ]

    def test_emails_unique_across_adjacent_batches(self, gen):
        emails = [u.email for u in gen.users(500, 0) + gen.users(500, 500)]
        assert len(set(emails)) == 1000

    def test_fields_populated(self, gen):
        user = gen.users(1, 0)[0]
        assert user.name
        assert user.avatar_url.startswith("http")
        assert user.created_at == user.updated_at

    def test_zero_count(self, gen):
        assert gen.users(0, 0) == []

    def test_negative_input_rejected(self, gen):
        with pytest.raises(GenerationError):
            gen.users(-1, 0)
        with pytest.raises(GenerationError):
            gen.users(1, -5)


class TestProducts:
    def test_ranges(self, gen):
        for p in gen.products(300, 0):
            assert_money(p.price, 10, 1000)
            assert 0 <= p.stock <= 1000
            assert len(p.name.split()) == 3
            assert p.description


class TestOrders:
    def test_user_ids_from_pool(self, gen):
        pool = ["u1", "u2", "u3"]
        orders = gen.orders(300, 0, OrderGenParams(pool))
        assert {o.user_id for o in orders} <= set(pool)
        for o in orders:
            assert o.status in ORDER_STATUSES
            assert_money(o.total, 10, 1000)

    def test_empty_pool_rejected(self, gen):
        with pytest.raises(GenerationError, match="user_ids"):
            gen.orders(1, 0, OrderGenParams([]))

    def test_empty_pool_fine_for_zero_count(self, gen):
        assert gen.orders(0, 0, OrderGenParams([])) == []


class TestOrderItems:
    def test_references_from_pools(self, gen):
        params = OrderItemGenParams(order_ids=["o1", "o2"], product_ids=["p1", "p2", "p3"])
        items = gen.order_items(300, 0, params)
        assert {i.order_id for i in items} <= {"o1", "o2"}
        assert {i.product_id for i in items} <= {"p1", "p2", "p3"}
        for i in items:
            assert 1 <= i.quantity <= 5
            assert_money(i.price, 5, 500)

    def test_missing_product_pool(self, gen):
        with pytest.raises(GenerationError, match="product_ids"):
            gen.order_items(1, 0, OrderItemGenParams(order_ids=["o1"], product_ids=[]))


class TestDispatch:
    def test_generate_defaults_params_for_independent_kinds(self, gen):
        assert len(gen.generate(EntityKind.USERS, 2, 0)) == 2
        assert len(gen.generate(EntityKind.PRODUCTS, 2, 0)) == 2

    def test_dependent_kind_needs_params(self, gen):
        with pytest.raises(GenerationError):
            gen.generate(EntityKind.ORDERS, 1, 0)

    def test_mismatched_params_rejected(self, gen):
        with pytest.raises(GenerationError, match="does not match"):
            gen.generate(EntityKind.ORDER_ITEMS, 1, 0, OrderGenParams(["u1"]))
        with pytest.raises(GenerationError):
            gen.generate(EntityKind.USERS, 1, 0, ProductGenParams())

    def test_bind(self, gen):
        fn = gen.bind(EntityKind.ORDERS, OrderGenParams(["u1"]))
        orders = fn(4, 10)
        assert len(orders) == 4
        assert all(o.user_id == "u1" for o in orders)

    def test_seed_reproducible_fields(self):
        a = EntityGenerator(seed=99).users(5, 0, UserGenParams())
        b = EntityGenerator(seed=99).users(5, 0, UserGenParams())
        assert [u.name for u in a] == [u.name for u in b]
        assert [u.email for u in a] == [u.email for u in b]


class TestRows:
    def test_as_row_follows_columns(self, gen):
        item = gen.order_items(1, 0, OrderItemGenParams(["o1"], ["p1"]))[0]
        row = as_row(EntityKind.ORDER_ITEMS, item)
        assert EntityKind.ORDER_ITEMS.columns == (
            "id", "created_at", "updated_at", "order_id", "product_id", "quantity", "price"
        )
        assert row[0] == item.id
        assert row[3:5] == ("o1", "p1")

    def test_kind_metadata(self):
        assert EntityKind.ORDER_ITEMS.table == "order_items"
        assert EntityKind.ORDER_ITEMS.label == "Order Items"
        assert [k.table for k in EntityKind] == ["users", "products", "orders", "order_items"]
