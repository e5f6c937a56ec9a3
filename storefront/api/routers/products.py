# storefront/api/routers/products.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.data.database import get_store
from storefront.data.store import KeyValueStore
from storefront.domain.errors import ProductNotFound
from storefront.domain.schemas import MessageOut, Product, ProductIn, ProductPageOut, ProductUpdateIn
from storefront.services.product_service import ProductService
from storefront.utils.settings import PRODUCT_PAGE_LIMIT

router = APIRouter(prefix="/products", tags=["products"])


def get_service(store: KeyValueStore = Depends(get_store)) -> ProductService:
    return ProductService(store)


# =====================================================
# ADMIN (store managers, tylko własne produkty)
# =====================================================
@router.post("", response_model=Product, status_code=201)
def add_product(
    payload: ProductIn,
    owner_id: str = Query(...),
    svc: ProductService = Depends(get_service),
):
    try:
        return svc.add_product(owner_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/admin/mine", response_model=List[Product])
def get_my_products(
    owner_id: str = Query(...),
    svc: ProductService = Depends(get_service),
):
    return svc.get_my_products(owner_id)


@router.put("/{product_id}", response_model=Product)
def update_product(
    product_id: str,
    payload: ProductUpdateIn,
    owner_id: str = Query(...),
    svc: ProductService = Depends(get_service),
):
    try:
        return svc.update_product(owner_id, product_id, payload)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{product_id}", response_model=MessageOut)
def delete_product(
    product_id: str,
    owner_id: str = Query(...),
    svc: ProductService = Depends(get_service),
):
    try:
        svc.delete_product(owner_id, product_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Product deleted successfully"}


# =====================================================
# PUBLIC
# =====================================================
@router.get("", response_model=ProductPageOut)
def get_all_products(
    sort_by: str = Query("createdAt", alias="sortBy"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    limit: int = Query(PRODUCT_PAGE_LIMIT, gt=0),
    last_key: Optional[str] = Query(None, alias="lastKey"),
    q: Optional[str] = None,
    category: Optional[str] = None,
    brand: Optional[str] = None,
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    svc: ProductService = Depends(get_service),
):
    return svc.list_products(
        sort_by=sort_by,
        order=order,
        limit=limit,
        last_key=last_key,
        q=q,
        category=category,
        brand=brand,
        owner_id=owner_id,
    )


@router.get("/{product_id}", response_model=Product)
def get_product(
    product_id: str,
    svc: ProductService = Depends(get_service),
):
    try:
        return svc.get_product(product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
