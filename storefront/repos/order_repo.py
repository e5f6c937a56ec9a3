# storefront/repos/order_repo.py
from typing import List

from storefront.data.store import Condition, KeyValueStore
from storefront.data.tables import ORDERS
from storefront.domain.order_status import OrderStatus
from storefront.domain.schemas import Order


class OrderRepo:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def create_order(self, order: Order) -> Order:
        # nowy element, bez nadpisywania istniejącego orderId
        self.store.put(ORDERS.name, order.to_item(), condition=Condition.not_exists("orderId"))
        return order

    def get_order(self, order_id: str) -> Order | None:
        item = self.store.get(ORDERS.name, {"orderId": order_id})
        return Order.model_validate(item) if item else None

    def get_orders_for_user(self, user_id: str) -> List[Order]:
        return [Order.model_validate(i) for i in self.store.scan(ORDERS.name, filters={"userId": user_id})]

    def get_orders_for_owner(self, owner_id: str) -> List[Order]:
        def has_owner_item(item: dict) -> bool:
            return any(i.get("product", {}).get("ownerId") == owner_id for i in item.get("items", []))

        return [Order.model_validate(i) for i in self.store.scan(ORDERS.name, predicate=has_owner_item)]

    def update_order_status(
        self,
        order_id: str,
        expected: OrderStatus,
        status: OrderStatus,
        updated_at: str,
    ) -> Order:
        """Warunek status == expected - dwie równoległe zmiany nie przejdą obie."""
        item = self.store.update(
            ORDERS.name,
            {"orderId": order_id},
            sets={"status": status.value, "updatedAt": updated_at},
            condition=Condition.equals("status", expected.value),
        )
        return Order.model_validate(item)

    def delete_order(self, order_id: str) -> None:
        self.store.delete(ORDERS.name, {"orderId": order_id})
