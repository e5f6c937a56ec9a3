from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from storefront.api import create_app
from storefront.api.routers import orders
from storefront.data.database import get_store, make_engine
from storefront.data.memory_store import InMemoryKeyValueStore
from storefront.data.sql_store import SqlKeyValueStore
from storefront.data.tables import ALL_TABLES, CART, PRODUCTS
from storefront.services.notification_service import NotificationService


class FakeTask:
    """Stand-in for the Celery task: records queued events instead of hitting the broker."""

    def __init__(self, fail: bool = False):
        self.events = []
        self.fail = fail

    def delay(self, event):
        if self.fail:
            raise ConnectionError("broker unreachable")
        self.events.append(event)


class RecordingStore:
    """Wraps a store and records every mutating call."""

    WRITES = ("put", "update", "delete")

    def __init__(self, inner):
        self.inner = inner
        self.writes = []

    def __getattr__(self, name):
        attr = getattr(self.inner, name)
        if name not in self.WRITES:
            return attr

        def recorded(*args, **kwargs):
            self.writes.append((name, args, kwargs))
            return attr(*args, **kwargs)

        return recorded


def _now():
    return datetime.now(timezone.utc).isoformat()


@pytest.fixture
def store():
    return InMemoryKeyValueStore(ALL_TABLES)


@pytest.fixture(params=["memory", "sql"])
def kv(request):
    # sqlite:// to jedno współdzielone połączenie - tylko do testów jednowątkowych,
    # współbieżność SQL testujemy na pliku (test_sql_concurrency.py)
    if request.param == "memory":
        return InMemoryKeyValueStore(ALL_TABLES)
    return SqlKeyValueStore(make_engine("sqlite://"), ALL_TABLES)


@pytest.fixture
def task():
    return FakeTask()


@pytest.fixture
def notifications(task):
    return NotificationService(task)


@pytest.fixture
def seed_product(store):
    def _seed(product_id, stock, price=10.0, owner_id="store-1", title=None):
        item = {
            "productId": product_id,
            "title": title or f"Product {product_id}",
            "description": f"Description of {product_id}",
            "imageUrl": f"https://img.example.com/{product_id}.png",
            "price": price,
            "stock": stock,
            "ownerId": owner_id,
            "category": "General",
            "brand": "Generic",
            "rating": 0,
            "reviews": [],
            "metadata": {},
            "createdAt": _now(),
            "updatedAt": _now(),
        }
        store.put(PRODUCTS.name, item)
        return item

    return _seed


@pytest.fixture
def seed_cart(store):
    def _seed(user_id, product_id, quantity):
        ts = _now()
        store.put(
            CART.name,
            {"userId": user_id, "productId": product_id, "quantity": quantity, "addedAt": ts, "updatedAt": ts},
        )

    return _seed


@pytest.fixture
def client(store, notifications):
    app = create_app()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[orders.get_notification_service] = lambda: notifications
    return TestClient(app)
