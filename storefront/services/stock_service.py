# storefront/services/stock_service.py
from dataclasses import dataclass
from datetime import datetime, timezone

from storefront.data.store import ConditionFailed, KeyValueStore
from storefront.domain.errors import InsufficientStock, ProductNotFound
from storefront.domain.schemas import ProductSnapshot
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Reservation:
    product_id: str
    quantity: int
    snapshot: ProductSnapshot
    remaining: int


class StockService:
    """
    Rezerwacja stanu magazynowego produktu:
    1. odczyt produktu -> snapshot do zamówienia (wartości sprzed zmniejszenia)
    2. warunkowy decrement stock >= q, oceniany atomowo przez magazyn

    Udana rezerwacja NIE jest tu cofana - to decyzja koordynatora zamówienia.
    """

    def __init__(self, store: KeyValueStore):
        self.repo = ProductRepo(store)

    def reserve(self, product_id: str, quantity: int) -> Reservation:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        product = self.repo.get_product(product_id)
        if product is None:
            logger.info(f"Reservation rejected, product {product_id} does not exist")
            raise ProductNotFound(product_id)

        # kopia wartościowa, nie referencja do rekordu produktu
        snapshot = ProductSnapshot.model_validate(product.model_dump())

        try:
            updated = self.repo.decrement_stock(product_id, quantity, _now())
        except ConditionFailed as e:
            # warunek nie przeszedł albo produkt zniknął między odczytem a zapisem
            current = self.repo.get_product(product_id)
            if current is None:
                logger.info(f"Reservation rejected, product {product_id} was deleted")
                raise ProductNotFound(product_id) from e

            logger.info(
                f"Reservation rejected for product {product_id}: "
                f"requested {quantity}, stock {current.stock}"
            )
            raise InsufficientStock(product_id, quantity, current.stock) from e

        logger.info(f"Reserved {quantity} x {product_id}, remaining stock {updated.stock}")
        return Reservation(product_id, quantity, snapshot, updated.stock)

    def release(self, reservation: Reservation) -> bool:
        """Zwrot rezerwacji (stock + q). False gdy produktu już nie ma."""
        try:
            updated = self.repo.increment_stock(reservation.product_id, reservation.quantity, _now())
        except ConditionFailed:
            logger.warning(f"Cannot release {reservation.quantity} x {reservation.product_id}, product is gone")
            return False

        logger.info(
            f"Released {reservation.quantity} x {reservation.product_id}, stock back to {updated.stock}"
        )
        return True


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
