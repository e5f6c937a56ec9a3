# storefront/data/sql_store.py
from contextlib import contextmanager
from typing import Any, Callable, Iterable, List, Mapping, Optional

from sqlalchemy import and_, delete, or_, select
from sqlalchemy import update as sql_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from storefront.data.database import Base
from storefront.data.models.item import ItemModel
from storefront.data.store import (
    Condition,
    ConditionFailed,
    Item,
    Key,
    StoreUnavailable,
    TableSchema,
    apply_update,
    matches,
)
from storefront.utils.retry import VersionConflict, cas_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class SqlKeyValueStore:
    """
    Magazyn klucz-wartość na SQLAlchemy (Postgres / SQLite).

    Warunkowe zapisy to optimistic locking na kolumnie version:
    UPDATE ... SET data = :new, version = version + 1 WHERE ... AND version = :old
    rowcount == 0 -> ktoś nas wyprzedził, czytamy jeszcze raz i oceniamy warunek od nowa.
    """

    def __init__(self, engine, tables: Iterable[TableSchema]):
        self._schemas = {t.name: t for t in tables}
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        try:
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Cannot initialize SQL store: {e}") from e

    def _schema(self, table: str) -> TableSchema:
        try:
            return self._schemas[table]
        except KeyError:
            raise ValueError(f"Unknown table {table}") from None

    @contextmanager
    def _session(self):
        db: Session = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"SQL store error: {e}")
            raise StoreUnavailable(str(e)) from e
        finally:
            db.close()

    def _where_key(self, table: str, pk: str, sk: str):
        return and_(
            ItemModel.table_name == table,
            ItemModel.partition_key == pk,
            ItemModel.sort_key == sk,
        )

    def _compare_and_swap(self, db: Session, table: str, pk: str, sk: str, version: int, data: Item):
        rowcount = db.execute(
            sql_update(ItemModel)
            .where(self._where_key(table, pk, sk), ItemModel.version == version)
            .values(data=data, version=version + 1)
        ).rowcount

        if rowcount == 0:
            db.rollback()
            raise VersionConflict(f"{table} {pk}/{sk} changed since version {version}")

        db.commit()

    # =====================================================
    # READ
    # =====================================================
    def get(self, table: str, key: Key) -> Optional[Item]:
        pk, sk = self._schema(table).key_tuple(key)
        with self._session() as db:
            row = db.get(ItemModel, (table, pk, sk))
            return dict(row.data) if row else None

    def query(self, table: str, partition_value: Any) -> List[Item]:
        self._schema(table)
        with self._session() as db:
            rows = db.execute(
                select(ItemModel)
                .where(ItemModel.table_name == table, ItemModel.partition_key == str(partition_value))
                .order_by(ItemModel.sort_key)
            ).scalars().all()
            return [dict(r.data) for r in rows]

    def scan(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        predicate: Optional[Callable[[Item], bool]] = None,
    ) -> List[Item]:
        self._schema(table)
        with self._session() as db:
            rows = db.execute(
                select(ItemModel).where(ItemModel.table_name == table)
            ).scalars().all()
            items = [dict(r.data) for r in rows]
        return [i for i in items if matches(i, filters) and (predicate is None or predicate(i))]

    def batch_get(self, table: str, keys: Iterable[Key]) -> List[Item]:
        schema = self._schema(table)
        wanted = [schema.key_tuple(k) for k in keys]
        if not wanted:
            return []

        with self._session() as db:
            rows = db.execute(
                select(ItemModel).where(
                    ItemModel.table_name == table,
                    or_(*[
                        and_(ItemModel.partition_key == pk, ItemModel.sort_key == sk)
                        for pk, sk in wanted
                    ]),
                )
            ).scalars().all()
            return [dict(r.data) for r in rows]

    # =====================================================
    # WRITE
    # =====================================================
    def put(self, table: str, item: Item, condition: Optional[Condition] = None) -> None:
        try:
            self._put(table, item, condition)
        except VersionConflict as e:
            raise StoreUnavailable(f"Too much contention on {table}: {e}") from e

    @cas_retry()
    def _put(self, table: str, item: Item, condition: Optional[Condition]) -> None:
        schema = self._schema(table)
        pk, sk = schema.key_tuple(schema.key_of(item))
        data = dict(item)

        with self._session() as db:
            row = db.get(ItemModel, (table, pk, sk))
            if condition and not condition.holds(row.data if row else None):
                raise ConditionFailed(f"Put condition failed on {table} {pk}/{sk}")

            if row is None:
                db.add(ItemModel(table_name=table, partition_key=pk, sort_key=sk, data=data, version=1))
                try:
                    db.commit()
                except IntegrityError:
                    # równoległy insert tego samego klucza
                    db.rollback()
                    raise VersionConflict(f"{table} {pk}/{sk} inserted concurrently")
                return

            self._compare_and_swap(db, table, pk, sk, row.version, data)

    def update(
        self,
        table: str,
        key: Key,
        increments: Optional[Mapping[str, Any]] = None,
        sets: Optional[Mapping[str, Any]] = None,
        condition: Optional[Condition] = None,
    ) -> Item:
        try:
            return self._update(table, key, increments, sets, condition)
        except VersionConflict as e:
            raise StoreUnavailable(f"Too much contention on {table}: {e}") from e

    @cas_retry()
    def _update(self, table, key, increments, sets, condition) -> Item:
        pk, sk = self._schema(table).key_tuple(key)

        with self._session() as db:
            row = db.get(ItemModel, (table, pk, sk))
            if row is None:
                raise ConditionFailed(f"Item {pk}/{sk} does not exist in {table}")

            current = dict(row.data)
            if condition and not condition.holds(current):
                raise ConditionFailed(f"Update condition failed on {table} {pk}/{sk}")

            updated = apply_update(current, increments, sets)
            self._compare_and_swap(db, table, pk, sk, row.version, updated)
            return updated

    def delete(self, table: str, key: Key) -> None:
        pk, sk = self._schema(table).key_tuple(key)
        with self._session() as db:
            db.execute(delete(ItemModel).where(self._where_key(table, pk, sk)))
            db.commit()
