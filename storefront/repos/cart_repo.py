# storefront/repos/cart_repo.py
from typing import List

from storefront.data.store import KeyValueStore
from storefront.data.tables import CART
from storefront.domain.schemas import CartLine


class CartRepo:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def get_cart_lines(self, user_id: str) -> List[CartLine]:
        return [CartLine.model_validate(i) for i in self.store.query(CART.name, user_id)]

    def get_cart_line(self, user_id: str, product_id: str) -> CartLine | None:
        item = self.store.get(CART.name, {"userId": user_id, "productId": product_id})
        return CartLine.model_validate(item) if item else None

    def put_cart_line(self, line: CartLine) -> CartLine:
        # ta sama para (userId, productId) nadpisuje linię
        self.store.put(CART.name, line.to_item())
        return line

    def delete_cart_line(self, user_id: str, product_id: str) -> None:
        self.store.delete(CART.name, {"userId": user_id, "productId": product_id})
