# storefront/data/store.py
"""
Kontrakt magazynu klucz-wartość, z którego korzystają repozytoria.

Operacje są atomowe per element, nie ma transakcji wieloelementowych.
Warunek (Condition) jest oceniany razem z zapisem - jeśli nie jest spełniony,
zapis nie następuje i leci ConditionFailed.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

Item = Dict[str, Any]
Key = Dict[str, Any]


class StoreError(Exception):
    pass


class StoreUnavailable(StoreError):
    """Magazyn nieosiągalny / przeciążony. Nie ponawiamy w serwisach."""


class ConditionFailed(StoreError):
    """Warunek zapisu nie był spełniony (albo element nie istnieje przy update)."""


@dataclass(frozen=True)
class Condition:
    attribute: str
    operator: str  # ge | eq | exists | not_exists
    value: Any = None

    @classmethod
    def at_least(cls, attribute: str, value: Any) -> "Condition":
        return cls(attribute, "ge", value)

    @classmethod
    def equals(cls, attribute: str, value: Any) -> "Condition":
        return cls(attribute, "eq", value)

    @classmethod
    def exists(cls, attribute: str) -> "Condition":
        return cls(attribute, "exists")

    @classmethod
    def not_exists(cls, attribute: str) -> "Condition":
        return cls(attribute, "not_exists")

    def holds(self, item: Optional[Item]) -> bool:
        if self.operator == "not_exists":
            return item is None or self.attribute not in item

        if item is None or self.attribute not in item:
            return False

        if self.operator == "exists":
            return True

        current = item[self.attribute]
        if self.operator == "ge":
            return current >= self.value
        if self.operator == "eq":
            return current == self.value

        raise ValueError(f"Unknown condition operator: {self.operator}")


@dataclass(frozen=True)
class TableSchema:
    name: str
    partition_key: str
    sort_key: Optional[str] = None

    def key_of(self, item: Mapping[str, Any]) -> Key:
        key = {self.partition_key: item[self.partition_key]}
        if self.sort_key:
            key[self.sort_key] = item[self.sort_key]
        return key

    def key_tuple(self, key: Mapping[str, Any]) -> Tuple[str, str]:
        try:
            pk = str(key[self.partition_key])
            sk = str(key[self.sort_key]) if self.sort_key else ""
        except KeyError as e:
            raise ValueError(f"Missing key attribute {e} for table {self.name}") from e
        return pk, sk


def apply_update(
    item: Item,
    increments: Optional[Mapping[str, Any]] = None,
    sets: Optional[Mapping[str, Any]] = None,
) -> Item:
    """Zwraca nową wersję elementu, wejście nie jest modyfikowane."""
    updated = dict(item)
    for attr, delta in (increments or {}).items():
        updated[attr] = updated.get(attr, 0) + delta
    for attr, value in (sets or {}).items():
        updated[attr] = value
    return updated


def matches(item: Item, filters: Optional[Mapping[str, Any]]) -> bool:
    return all(item.get(attr) == value for attr, value in (filters or {}).items())


class KeyValueStore(Protocol):
    def get(self, table: str, key: Key) -> Optional[Item]:
        ...

    def put(self, table: str, item: Item, condition: Optional[Condition] = None) -> None:
        ...

    def update(
        self,
        table: str,
        key: Key,
        increments: Optional[Mapping[str, Any]] = None,
        sets: Optional[Mapping[str, Any]] = None,
        condition: Optional[Condition] = None,
    ) -> Item:
        ...

    def delete(self, table: str, key: Key) -> None:
        ...

    def query(self, table: str, partition_value: Any) -> List[Item]:
        ...

    def scan(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        predicate: Optional[Callable[[Item], bool]] = None,
    ) -> List[Item]:
        ...

    def batch_get(self, table: str, keys: Iterable[Key]) -> List[Item]:
        ...
