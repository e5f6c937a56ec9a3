"""Contract tests shared by the in-memory and SQL key-value stores."""

import pytest

from storefront.data.store import Condition, ConditionFailed
from storefront.data.tables import CART, ORDERS, PRODUCTS


def _product(product_id, stock=5):
    return {"productId": product_id, "title": product_id, "stock": stock, "price": 10.0}


class TestGetPut:
    def test_get_missing_returns_none(self, kv):
        assert kv.get(PRODUCTS.name, {"productId": "nope"}) is None

    def test_put_then_get(self, kv):
        kv.put(PRODUCTS.name, _product("P1"))
        assert kv.get(PRODUCTS.name, {"productId": "P1"}) == _product("P1")

    def test_put_same_key_overwrites(self, kv):
        kv.put(CART.name, {"userId": "u1", "productId": "P1", "quantity": 1})
        kv.put(CART.name, {"userId": "u1", "productId": "P1", "quantity": 4})

        assert kv.query(CART.name, "u1") == [{"userId": "u1", "productId": "P1", "quantity": 4}]

    def test_conditional_put_rejects_existing_key(self, kv):
        kv.put(ORDERS.name, {"orderId": "o1", "userId": "u1"})

        with pytest.raises(ConditionFailed):
            kv.put(ORDERS.name, {"orderId": "o1", "userId": "u2"}, condition=Condition.not_exists("orderId"))

        assert kv.get(ORDERS.name, {"orderId": "o1"})["userId"] == "u1"

    def test_returned_item_is_detached(self, kv):
        kv.put(PRODUCTS.name, _product("P1"))
        item = kv.get(PRODUCTS.name, {"productId": "P1"})
        item["stock"] = 999

        assert kv.get(PRODUCTS.name, {"productId": "P1"})["stock"] == 5


class TestConditionalUpdate:
    def test_guarded_decrement_succeeds_when_enough(self, kv):
        kv.put(PRODUCTS.name, _product("P1", stock=5))

        updated = kv.update(
            PRODUCTS.name,
            {"productId": "P1"},
            increments={"stock": -5},
            condition=Condition.at_least("stock", 5),
        )

        assert updated["stock"] == 0
        assert kv.get(PRODUCTS.name, {"productId": "P1"})["stock"] == 0

    def test_guarded_decrement_fails_without_writing(self, kv):
        kv.put(PRODUCTS.name, _product("P1", stock=3))

        with pytest.raises(ConditionFailed):
            kv.update(
                PRODUCTS.name,
                {"productId": "P1"},
                increments={"stock": -4},
                condition=Condition.at_least("stock", 4),
            )

        assert kv.get(PRODUCTS.name, {"productId": "P1"})["stock"] == 3

    def test_update_missing_item_fails(self, kv):
        with pytest.raises(ConditionFailed):
            kv.update(PRODUCTS.name, {"productId": "ghost"}, sets={"title": "x"})

        assert kv.get(PRODUCTS.name, {"productId": "ghost"}) is None

    def test_equals_guard(self, kv):
        kv.put(ORDERS.name, {"orderId": "o1", "status": "PENDING"})

        kv.update(ORDERS.name, {"orderId": "o1"}, sets={"status": "SHIPPED"}, condition=Condition.equals("status", "PENDING"))

        with pytest.raises(ConditionFailed):
            kv.update(ORDERS.name, {"orderId": "o1"}, sets={"status": "DELIVERED"}, condition=Condition.equals("status", "PENDING"))

        assert kv.get(ORDERS.name, {"orderId": "o1"})["status"] == "SHIPPED"


class TestDeleteQueryScan:
    def test_delete_is_idempotent(self, kv):
        kv.put(CART.name, {"userId": "u1", "productId": "P1", "quantity": 1})

        kv.delete(CART.name, {"userId": "u1", "productId": "P1"})
        kv.delete(CART.name, {"userId": "u1", "productId": "P1"})

        assert kv.query(CART.name, "u1") == []

    def test_query_returns_only_partition(self, kv):
        kv.put(CART.name, {"userId": "u1", "productId": "P2", "quantity": 1})
        kv.put(CART.name, {"userId": "u1", "productId": "P1", "quantity": 2})
        kv.put(CART.name, {"userId": "u2", "productId": "P1", "quantity": 3})

        lines = kv.query(CART.name, "u1")

        assert [line["productId"] for line in lines] == ["P1", "P2"]

    def test_scan_with_filters_and_predicate(self, kv):
        kv.put(ORDERS.name, {"orderId": "o1", "userId": "u1", "total": 5})
        kv.put(ORDERS.name, {"orderId": "o2", "userId": "u1", "total": 50})
        kv.put(ORDERS.name, {"orderId": "o3", "userId": "u2", "total": 50})

        assert {o["orderId"] for o in kv.scan(ORDERS.name, filters={"userId": "u1"})} == {"o1", "o2"}
        big = kv.scan(ORDERS.name, filters={"userId": "u1"}, predicate=lambda o: o["total"] > 10)
        assert [o["orderId"] for o in big] == ["o2"]

    def test_batch_get_omits_missing_keys(self, kv):
        kv.put(PRODUCTS.name, _product("P1"))
        kv.put(PRODUCTS.name, _product("P2"))

        found = kv.batch_get(PRODUCTS.name, [{"productId": "P1"}, {"productId": "nope"}, {"productId": "P2"}])

        assert sorted(p["productId"] for p in found) == ["P1", "P2"]
        assert kv.batch_get(PRODUCTS.name, []) == []

    def test_unknown_table_is_rejected(self, kv):
        with pytest.raises(ValueError):
            kv.get("NoSuchTable", {"id": "1"})
