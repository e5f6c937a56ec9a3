# storefront/services/product_service.py
import base64
import binascii
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from storefront.data.store import ConditionFailed, KeyValueStore
from storefront.domain.errors import ProductNotFound
from storefront.domain.schemas import Product, ProductIn, ProductUpdateIn
from storefront.repos.product_repo import ProductRepo
from storefront.utils.settings import PRODUCT_PAGE_LIMIT
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def encode_last_key(product_id: str | None) -> str | None:
    if not product_id:
        return None
    return base64.b64encode(json.dumps({"productId": product_id}).encode()).decode()


def parse_last_key(last_key: str | None) -> str | None:
    # zły kursor traktujemy jak brak kursora
    if not last_key:
        return None
    try:
        return json.loads(base64.b64decode(last_key).decode()).get("productId")
    except (binascii.Error, ValueError, AttributeError):
        return None


def _as_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def sort_products(products: List[Product], sort_by: str = "createdAt", order: str = "desc") -> List[Product]:
    """
    Sortowanie po dowolnym atrybucie: daty ISO jako daty, liczby numerycznie, reszta jako tekst.
    Brakujące wartości na końcu przy asc, na początku przy desc.
    """
    descending = order != "asc"
    rows = [(p.to_item().get(sort_by), p) for p in products]

    present = [(v, p) for v, p in rows if v is not None]
    missing = [p for v, p in rows if v is None]

    def sort_key(row: Tuple[Any, Product]):
        value = row[0]
        as_date = _as_datetime(value)
        if as_date is not None:
            return (0, as_date.timestamp(), "")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return (1, float(value), "")
        return (2, 0.0, str(value))

    ordered = [p for _, p in sorted(present, key=sort_key, reverse=descending)]
    return missing + ordered if descending else ordered + missing


class ProductService:
    """Katalog produktów. Stan (stock) zmienia się w zamówieniach tylko przez StockService."""

    def __init__(self, store: KeyValueStore):
        self.repo = ProductRepo(store)

    #query
    def list_products(
        self,
        sort_by: str = "createdAt",
        order: str = "desc",
        limit: int = PRODUCT_PAGE_LIMIT,
        last_key: Optional[str] = None,
        q: Optional[str] = None,
        category: Optional[str] = None,
        brand: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        if limit <= 0:
            raise ValueError("limit must be greater than 0")

        filters = {k: v for k, v in {"category": category, "brand": brand, "ownerId": owner_id}.items() if v}

        predicate = None
        if q:
            def predicate(item: dict) -> bool:
                return q in (item.get("title") or "") or q in (item.get("description") or "")

        products = sort_products(self.repo.list_products(filters, predicate), sort_by, order)

        start = 0
        after = parse_last_key(last_key)
        if after:
            ids = [p.product_id for p in products]
            start = ids.index(after) + 1 if after in ids else 0

        page = products[start:start + limit]
        has_more = start + limit < len(products)

        return {
            "items": page,
            "last_key": encode_last_key(page[-1].product_id) if page and has_more else None,
            "count": len(page),
        }

    def get_product(self, product_id: str) -> Product:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id)
        return product

    def get_my_products(self, owner_id: str) -> List[Product]:
        return self.repo.list_products({"ownerId": owner_id})

    #commands
    def add_product(self, owner_id: str, payload: ProductIn) -> Product:
        if not owner_id:
            raise ValueError("Missing authenticated owner")

        timestamp = datetime.now(timezone.utc).isoformat()
        product = Product(
            product_id=str(uuid.uuid4()),
            title=payload.title,
            image_url=payload.image_url,
            description=payload.description,
            price=payload.price,
            stock=payload.stock,
            category=payload.category or "General",
            brand=payload.brand or "Generic",
            rating=0,
            reviews=[],
            metadata=payload.metadata or {},
            owner_id=owner_id,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self.repo.create_product(product)

        logger.info(f"Product {product.product_id} added by {owner_id}")
        return product

    def update_product(self, owner_id: str, product_id: str, payload: ProductUpdateIn) -> Product:
        current = self.get_product(product_id)
        if current.owner_id != owner_id:
            raise PermissionError("You can only update your own products")

        changes = payload.model_dump(by_alias=True, exclude_none=True)
        if not changes:
            raise ValueError("No fields to update")
        changes["updatedAt"] = datetime.now(timezone.utc).isoformat()

        try:
            updated = self.repo.update_product(product_id, changes)
        except ConditionFailed as e:
            # usunięty w międzyczasie
            raise ProductNotFound(product_id) from e
        logger.info(f"Product {product_id} updated by {owner_id}: {sorted(changes)}")
        return updated

    def delete_product(self, owner_id: str, product_id: str) -> None:
        current = self.get_product(product_id)
        if current.owner_id != owner_id:
            raise PermissionError("You can only delete your own products")

        self.repo.delete_product(product_id)
        logger.info(f"Product {product_id} deleted by {owner_id}")
