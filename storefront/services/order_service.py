# storefront/services/order_service.py
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List

from storefront.data.store import ConditionFailed, KeyValueStore, StoreUnavailable
from storefront.domain.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidStatusTransition,
    OrderNotFound,
    OrderWriteFailed,
    ProductNotFound,
)
from storefront.domain.order_status import OrderStatus, check_transition
from storefront.domain.schemas import Order, OrderItem
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import CartService
from storefront.services.notification_service import NotificationService
from storefront.services.stock_service import Reservation, StockService
from storefront.utils.settings import ORDER_COMPENSATE_RESERVATIONS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class PlacementState(str, Enum):
    CART_LOADED = "CART_LOADED"
    RESERVING = "RESERVING"
    RESERVED = "RESERVED"
    ORDER_WRITTEN = "ORDER_WRITTEN"
    CART_CLEARED = "CART_CLEARED"
    NOTIFIED = "NOTIFIED"
    EMPTY_CART = "EMPTY_CART"
    RESERVATION_FAILED = "RESERVATION_FAILED"
    ORDER_WRITE_FAILED = "ORDER_WRITE_FAILED"


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.
    Składanie zamówienia koordynuje koszyk, rezerwacje stanu i powiadomienia.
    """

    def __init__(
        self,
        store: KeyValueStore,
        notification_service: NotificationService | None = None,
        compensate_reservations: bool = ORDER_COMPENSATE_RESERVATIONS,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.repo = OrderRepo(store)
        self.cart_service = CartService(store)
        self.stock_service = StockService(store)
        self.notification_service = notification_service or NotificationService()
        self.compensate_reservations = compensate_reservations
        self.id_factory = id_factory

    def place_order(self, user_id: str) -> Order:
        """
        Use Case: Złożenie zamówienia z koszyka użytkownika.

        1. Wczytuje koszyk (pusty -> EmptyCart, nic nie zmieniamy)
        2. Rezerwuje stan dla każdej linii po kolei, pierwsza porażka przerywa
        3. Składa zamówienie ze snapshotami produktów z kroku 2
        4. Zapisuje zamówienie (nowy element, bez nadpisywania)
        5. Czyści zużyte linie koszyka
        6. Kolejkuje powiadomienie (best-effort)

        Bez kompensacji rezerwacje wcześniejszych linii zostają przy porażce
        kolejnej linii - użytkownik może "stracić" stan na linii 1, gdy linia 2 nie przejdzie.
        """
        lines = self.cart_service.get_cart(user_id)
        if not lines:
            self._enter(PlacementState.EMPTY_CART, user_id)
            raise EmptyCart(user_id)
        self._enter(PlacementState.CART_LOADED, user_id, f"{len(lines)} line(s)")

        self._enter(PlacementState.RESERVING, user_id)
        reservations: List[Reservation] = []
        for line in lines:
            try:
                reservations.append(self.stock_service.reserve(line.product_id, line.quantity))
            except (ProductNotFound, InsufficientStock, StoreUnavailable) as e:
                self._enter(PlacementState.RESERVATION_FAILED, user_id, str(e))
                self._compensate(user_id, reservations)
                raise
        self._enter(PlacementState.RESERVED, user_id)

        order = self._build_order(user_id, reservations)
        try:
            self.repo.create_order(order)
        except ConditionFailed as e:
            self._enter(PlacementState.ORDER_WRITE_FAILED, user_id, f"orderId {order.order_id} collision")
            self._compensate(user_id, reservations)
            raise OrderWriteFailed(f"Order id {order.order_id} already exists") from e
        except StoreUnavailable as e:
            self._enter(PlacementState.ORDER_WRITE_FAILED, user_id, str(e))
            self._compensate(user_id, reservations)
            raise
        self._enter(PlacementState.ORDER_WRITTEN, user_id, order.order_id)

        # zamówienie jest już wiążące, pozostałe linie koszyka to tylko kosmetyka
        leftovers = self.cart_service.clear_lines(user_id, [r.product_id for r in reservations])
        if leftovers:
            logger.warning(f"Order {order.order_id}: cart lines {leftovers} were not cleared")
        self._enter(PlacementState.CART_CLEARED, user_id, order.order_id)

        self.notification_service.send_order_notification(order)
        self._enter(PlacementState.NOTIFIED, user_id, order.order_id)

        return order

    def _build_order(self, user_id: str, reservations: List[Reservation]) -> Order:
        timestamp = datetime.now(timezone.utc).isoformat()
        return Order(
            order_id=self.id_factory(),
            user_id=user_id,
            items=[
                OrderItem(product_id=r.product_id, quantity=r.quantity, product=r.snapshot)
                for r in reservations
            ],
            status=OrderStatus.PENDING,
            created_at=timestamp,
            updated_at=timestamp,
        )

    def _compensate(self, user_id: str, reservations: List[Reservation]) -> None:
        if not reservations:
            return

        if not self.compensate_reservations:
            logger.warning(
                f"User {user_id}: {len(reservations)} earlier reservation(s) stay committed "
                f"({', '.join(r.product_id for r in reservations)})"
            )
            return

        # od końca, jak stos
        for reservation in reversed(reservations):
            try:
                self.stock_service.release(reservation)
            except StoreUnavailable as e:
                logger.error(
                    f"User {user_id}: compensation of {reservation.quantity} x "
                    f"{reservation.product_id} failed: {e}"
                )

    def _enter(self, state: PlacementState, user_id: str, detail: str = "") -> None:
        logger.info(f"Place order [{user_id}] -> {state.value} {detail}".rstrip())

    # =====================================================
    # QUERY
    # =====================================================
    def get_orders(self, user_id: str) -> List[Order]:
        return self.repo.get_orders_for_user(user_id)

    def get_store_orders(self, owner_id: str) -> List[Order]:
        """Zamówienia, w których jest choć jeden produkt danego sklepu (admina)."""
        return self.repo.get_orders_for_owner(owner_id)

    def get_order(self, order_id: str, user_id: str) -> Order:
        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFound(order_id)

        if order.user_id != user_id:
            raise PermissionError("Access denied to this order")

        return order

    # =====================================================
    # COMMANDS
    # =====================================================
    def update_status(self, order_id: str, owner_id: str, status: OrderStatus) -> Order:
        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFound(order_id)

        if not any(i.product.owner_id == owner_id for i in order.items):
            raise PermissionError("Only the store owning this order can change its status")

        target = check_transition(order.status, status)

        try:
            updated = self.repo.update_order_status(
                order_id,
                expected=order.status,
                status=target,
                updated_at=datetime.now(timezone.utc).isoformat(),
            )
        except ConditionFailed as e:
            # ktoś zmienił status w międzyczasie (albo zamówienie usunięto)
            current = self.repo.get_order(order_id)
            if current is None:
                raise OrderNotFound(order_id) from e
            raise InvalidStatusTransition(current.status.value, target.value) from e

        logger.info(f"Order {order_id} status {order.status.value} -> {target.value}")
        return updated

    def delete_order(self, order_id: str, user_id: str) -> None:
        order = self.get_order(order_id, user_id)
        self.repo.delete_order(order.order_id)
        logger.info(f"Order {order_id} deleted by user {user_id}")
