# storefront/data/database.py
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from storefront.utils.settings import AWS_REGION, DATABASE_URL, STORE_BACKEND
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


def make_engine(url: str = DATABASE_URL):
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # baza w pamięci musi żyć na jednym połączeniu
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(url, **kwargs)


@lru_cache(maxsize=1)
def get_store():
    """
    Dependency FastAPI - jeden magazyn na proces, wybierany przez STORE_BACKEND.
    W testach nadpisywane przez app.dependency_overrides.
    """
    from storefront.data.tables import ALL_TABLES

    logger.info(f"Initializing '{STORE_BACKEND}' store backend")

    if STORE_BACKEND == "memory":
        from storefront.data.memory_store import InMemoryKeyValueStore
        return InMemoryKeyValueStore(ALL_TABLES)

    if STORE_BACKEND == "sql":
        from storefront.data.sql_store import SqlKeyValueStore
        return SqlKeyValueStore(make_engine(), ALL_TABLES)

    if STORE_BACKEND == "dynamodb":
        import boto3
        from storefront.data.dynamo_store import DynamoKeyValueStore
        return DynamoKeyValueStore(boto3.resource("dynamodb", region_name=AWS_REGION), ALL_TABLES)

    raise ValueError(f"Unsupported STORE_BACKEND: {STORE_BACKEND}")
