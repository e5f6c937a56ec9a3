# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.data.database import get_store
from storefront.data.store import KeyValueStore
from storefront.domain.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidStatusTransition,
    OrderNotFound,
    OrderWriteFailed,
    ProductNotFound,
)
from storefront.domain.schemas import MessageOut, Order, OrderPlacedOut, OrdersOut, OrderStatusIn
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/order", tags=["orders"])


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_service(
    store: KeyValueStore = Depends(get_store),
    notifications: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(store, notifications)


@router.post("", response_model=OrderPlacedOut, status_code=201)
def place_order(
    user_id: str = Query(...),
    svc: OrderService = Depends(get_service),
):
    """
    Składa zamówienie z koszyka użytkownika (koszyk jest po stronie serwera, brak body).
    Powiadomienie idzie asynchronicznie.
    """
    try:
        return {"order": svc.place_order(user_id)}
    except EmptyCart as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InsufficientStock as e:
        raise HTTPException(status_code=409, detail=str(e))
    except OrderWriteFailed:
        raise HTTPException(status_code=500, detail="Error placing order")


@router.get("", response_model=OrdersOut)
def get_user_orders(
    user_id: str = Query(...),
    svc: OrderService = Depends(get_service),
):
    return {"orders": svc.get_orders(user_id)}


@router.get("/my-orders", response_model=OrdersOut)
def get_orders_for_my_store(
    owner_id: str = Query(...),
    svc: OrderService = Depends(get_service),
):
    return {"orders": svc.get_store_orders(owner_id)}


@router.get("/{order_id}", response_model=Order)
def get_order(
    order_id: str,
    user_id: str = Query(...),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.get_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{order_id}/status", response_model=Order)
def update_order_status(
    order_id: str,
    payload: OrderStatusIn,
    owner_id: str = Query(...),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.update_status(order_id, owner_id, payload.status)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/{order_id}", response_model=MessageOut)
def delete_order(
    order_id: str,
    user_id: str = Query(...),
    svc: OrderService = Depends(get_service),
):
    try:
        svc.delete_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Order deleted successfully"}
