#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.data.database import get_store
from storefront.data.store import KeyValueStore
from storefront.domain.errors import CartLineNotFound
from storefront.domain.schemas import (
    CartItemDeleteIn,
    CartItemsIn,
    CartItemUpdateIn,
    CartOut,
    MessageOut,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(store: KeyValueStore = Depends(get_store)) -> CartService:
    return CartService(store)


@router.post("", response_model=MessageOut)
def add_to_cart(
    payload: CartItemsIn,
    user_id: str = Query(...),
    svc: CartService = Depends(get_service),
):
    try:
        svc.add_items(user_id, payload.items)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Cart updated successfully"}


@router.get("", response_model=CartOut)
def get_cart(
    user_id: str = Query(...),
    svc: CartService = Depends(get_service),
):
    return {"cart": svc.get_cart(user_id)}


@router.put("/update", response_model=MessageOut)
def update_cart_item(
    payload: CartItemUpdateIn,
    user_id: str = Query(...),
    svc: CartService = Depends(get_service),
):
    try:
        svc.update_item(user_id, payload.product_id, payload.quantity)
    except CartLineNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Cart item updated successfully"}


@router.delete("/delete", response_model=MessageOut)
def delete_cart_item(
    payload: CartItemDeleteIn,
    user_id: str = Query(...),
    svc: CartService = Depends(get_service),
):
    try:
        svc.remove_item(user_id, payload.product_id)
    except CartLineNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Cart item removed successfully"}
