# storefront/repos/product_repo.py
from typing import Any, Callable, Dict, List, Optional

from storefront.data.store import Condition, KeyValueStore
from storefront.data.tables import PRODUCTS
from storefront.domain.schemas import Product


class ProductRepo:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def get_product(self, product_id: str) -> Product | None:
        item = self.store.get(PRODUCTS.name, {"productId": product_id})
        return Product.model_validate(item) if item else None

    def list_products(
        self,
        filters: Optional[Dict[str, Any]] = None,
        predicate: Optional[Callable[[dict], bool]] = None,
    ) -> List[Product]:
        items = self.store.scan(PRODUCTS.name, filters=filters, predicate=predicate)
        return [Product.model_validate(i) for i in items]

    def create_product(self, product: Product) -> Product:
        self.store.put(PRODUCTS.name, product.to_item(), condition=Condition.not_exists("productId"))
        return product

    def update_product(self, product_id: str, changes: Dict[str, Any]) -> Product:
        item = self.store.update(PRODUCTS.name, {"productId": product_id}, sets=changes)
        return Product.model_validate(item)

    def delete_product(self, product_id: str) -> None:
        self.store.delete(PRODUCTS.name, {"productId": product_id})

    def decrement_stock(self, product_id: str, quantity: int, updated_at: str) -> Product:
        """SET stock = stock - q WHERE stock >= q, atomowo po stronie magazynu."""
        item = self.store.update(
            PRODUCTS.name,
            {"productId": product_id},
            increments={"stock": -quantity},
            sets={"updatedAt": updated_at},
            condition=Condition.at_least("stock", quantity),
        )
        return Product.model_validate(item)

    def increment_stock(self, product_id: str, quantity: int, updated_at: str) -> Product:
        item = self.store.update(
            PRODUCTS.name,
            {"productId": product_id},
            increments={"stock": quantity},
            sets={"updatedAt": updated_at},
            condition=Condition.exists("productId"),
        )
        return Product.model_validate(item)
