from datetime import datetime, timezone
from typing import Iterable, List

from storefront.data.store import KeyValueStore, StoreUnavailable
from storefront.domain.errors import CartLineNotFound
from storefront.domain.schemas import CartItemIn, CartLine
from storefront.repos.cart_repo import CartRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Koszyk użytkownika = linie (userId, productId) w tabeli Cart.
    query (get) tylko odczyt, commands (add, update, remove, clear) modyfikują stan
    """

    def __init__(self, store: KeyValueStore):
        self.repo = CartRepo(store)

    #query - odczyt
    def get_cart(self, user_id: str) -> List[CartLine]:
        # pusty koszyk to nie błąd
        return self.repo.get_cart_lines(user_id)

    #commands
    def add_items(self, user_id: str, items: Iterable[CartItemIn]) -> int:
        if not items:
            raise ValueError("Items array is required")

        timestamp = datetime.now(timezone.utc).isoformat()
        written = 0

        for item in items:
            #niepoprawne linie pomijamy
            if not item.product_id or not item.quantity or item.quantity <= 0:
                logger.info(f"Skipping invalid cart line for user {user_id}: {item}")
                continue

            self.repo.put_cart_line(
                CartLine(
                    user_id=user_id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    added_at=timestamp,
                    updated_at=timestamp,
                )
            )
            written += 1

        logger.info(f"Cart of user {user_id} updated, {written} line(s) written")
        return written

    def update_item(self, user_id: str, product_id: str, quantity: int) -> CartLine:
        if quantity <= 0:
            raise ValueError("Valid productId and quantity are required")

        existing = self.repo.get_cart_line(user_id, product_id)
        if not existing:
            raise CartLineNotFound(product_id)

        line = CartLine(
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
            added_at=existing.added_at,
            updated_at=datetime.now(timezone.utc).isoformat(),
        )
        return self.repo.put_cart_line(line)

    def remove_item(self, user_id: str, product_id: str) -> None:
        if not self.repo.get_cart_line(user_id, product_id):
            raise CartLineNotFound(product_id)

        logger.info(f"Removing product {product_id} from cart of user {user_id}")
        self.repo.delete_cart_line(user_id, product_id)

    def clear_lines(self, user_id: str, product_ids: Iterable[str]) -> List[str]:
        """
        Usuwa zużyte linie koszyka po złożeniu zamówienia, jedna po drugiej.
        Usunięcie nieistniejącej linii nie jest błędem.
        Zwraca productId linii, których nie udało się usunąć (nie cofamy zamówienia).
        """
        leftovers = []
        for product_id in product_ids:
            try:
                self.repo.delete_cart_line(user_id, product_id)
            except StoreUnavailable as e:
                logger.warning(f"Cart line {user_id}/{product_id} left behind: {e}")
                leftovers.append(product_id)
        return leftovers
