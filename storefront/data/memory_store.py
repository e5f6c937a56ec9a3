# storefront/data/memory_store.py
import copy
import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from storefront.data.store import (
    Condition,
    ConditionFailed,
    Item,
    Key,
    TableSchema,
    apply_update,
    matches,
)


class InMemoryKeyValueStore:
    """
    Magazyn w pamięci procesu (lokalny dev i testy).
    Jeden lock na cały magazyn - ocena warunku i zapis dzieją się razem.
    Zwracamy kopie, żeby nikt nie trzymał referencji do stanu magazynu.
    """

    def __init__(self, tables: Iterable[TableSchema]):
        self._schemas = {t.name: t for t in tables}
        self._data: Dict[str, Dict[Tuple[str, str], Item]] = {name: {} for name in self._schemas}
        self._lock = threading.RLock()

    def _schema(self, table: str) -> TableSchema:
        try:
            return self._schemas[table]
        except KeyError:
            raise ValueError(f"Unknown table {table}") from None

    def get(self, table: str, key: Key) -> Optional[Item]:
        schema = self._schema(table)
        with self._lock:
            item = self._data[table].get(schema.key_tuple(key))
            return copy.deepcopy(item) if item is not None else None

    def put(self, table: str, item: Item, condition: Optional[Condition] = None) -> None:
        schema = self._schema(table)
        k = schema.key_tuple(schema.key_of(item))
        with self._lock:
            if condition and not condition.holds(self._data[table].get(k)):
                raise ConditionFailed(f"Put condition failed on {table} {k}")
            self._data[table][k] = copy.deepcopy(item)

    def update(
        self,
        table: str,
        key: Key,
        increments: Optional[Mapping[str, Any]] = None,
        sets: Optional[Mapping[str, Any]] = None,
        condition: Optional[Condition] = None,
    ) -> Item:
        schema = self._schema(table)
        k = schema.key_tuple(key)
        with self._lock:
            current = self._data[table].get(k)
            if current is None:
                raise ConditionFailed(f"Item {k} does not exist in {table}")
            if condition and not condition.holds(current):
                raise ConditionFailed(f"Update condition failed on {table} {k}")

            updated = apply_update(current, increments, sets)
            self._data[table][k] = updated
            return copy.deepcopy(updated)

    def delete(self, table: str, key: Key) -> None:
        schema = self._schema(table)
        with self._lock:
            self._data[table].pop(schema.key_tuple(key), None)

    def query(self, table: str, partition_value: Any) -> List[Item]:
        self._schema(table)
        pk = str(partition_value)
        with self._lock:
            rows = [(k, v) for k, v in self._data[table].items() if k[0] == pk]
            return [copy.deepcopy(v) for _, v in sorted(rows, key=lambda kv: kv[0][1])]

    def scan(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        predicate: Optional[Callable[[Item], bool]] = None,
    ) -> List[Item]:
        self._schema(table)
        with self._lock:
            items = [copy.deepcopy(v) for v in self._data[table].values()]
        return [i for i in items if matches(i, filters) and (predicate is None or predicate(i))]

    def batch_get(self, table: str, keys: Iterable[Key]) -> List[Item]:
        found = []
        for key in keys:
            item = self.get(table, key)
            if item is not None:
                found.append(item)
        return found
