"""SQL store under concurrent writers: version-column compare-and-swap with retries."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from storefront.data.database import make_engine
from storefront.data.sql_store import SqlKeyValueStore
from storefront.data.store import Condition, ConditionFailed
from storefront.data.tables import ALL_TABLES, PRODUCTS
from storefront.domain.errors import InsufficientStock
from storefront.services.stock_service import StockService


def _product(product_id, stock):
    return {
        "productId": product_id, "title": product_id, "price": 5.0, "stock": stock, "ownerId": "store-1",
        "createdAt": "2024-01-01T00:00:00+00:00", "updatedAt": "2024-01-01T00:00:00+00:00",
    }


@pytest.fixture
def file_engine(tmp_path):
    # plik, nie sqlite:// - każdy wątek dostaje własne połączenie
    engine = make_engine(f"sqlite:///{tmp_path / 'kv.db'}")
    yield engine
    engine.dispose()


class InterleavedWriteStore(SqlKeyValueStore):
    """Wstrzykuje cudzy zapis tuż przed compare-and-swap."""

    def __init__(self, engine, tables):
        super().__init__(engine, tables)
        self.interleave = None
        self.swaps = 0

    def _compare_and_swap(self, db, table, pk, sk, version, data):
        self.swaps += 1
        if self.interleave:
            action, self.interleave = self.interleave, None
            action()
        super()._compare_and_swap(db, table, pk, sk, version, data)


class TestCompareAndSwap:
    def test_lost_race_rereads_and_rechecks_condition(self, file_engine):
        store = InterleavedWriteStore(file_engine, ALL_TABLES)
        store.put(PRODUCTS.name, _product("P1", stock=5))
        store.interleave = lambda: store.update(PRODUCTS.name, {"productId": "P1"}, increments={"stock": -3})

        with pytest.raises(ConditionFailed):
            store.update(
                PRODUCTS.name,
                {"productId": "P1"},
                increments={"stock": -3},
                condition=Condition.at_least("stock", 3),
            )

        assert store.get(PRODUCTS.name, {"productId": "P1"})["stock"] == 2
        # nasz CAS i CAS konkurenta; po ponownym odczycie warunek odpada jeszcze przed zapisem
        assert store.swaps == 2

    def test_lost_race_retries_until_written(self, file_engine):
        store = InterleavedWriteStore(file_engine, ALL_TABLES)
        store.put(PRODUCTS.name, _product("P1", stock=10))
        store.interleave = lambda: store.update(PRODUCTS.name, {"productId": "P1"}, increments={"stock": -3})

        updated = store.update(
            PRODUCTS.name,
            {"productId": "P1"},
            increments={"stock": -3},
            condition=Condition.at_least("stock", 3),
        )

        assert updated["stock"] == 4
        assert store.get(PRODUCTS.name, {"productId": "P1"})["stock"] == 4


class TestConcurrentReservations:
    def test_never_oversells(self, file_engine):
        store = SqlKeyValueStore(file_engine, ALL_TABLES)
        store.put(PRODUCTS.name, _product("P1", stock=5))
        stock = StockService(store)

        def attempt(_):
            try:
                stock.reserve("P1", 1)
                return True
            except InsufficientStock:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, range(24)))

        assert sum(results) == 5
        assert store.get(PRODUCTS.name, {"productId": "P1"})["stock"] == 0
