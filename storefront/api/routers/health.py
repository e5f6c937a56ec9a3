from fastapi import APIRouter

from storefront.utils.settings import STORE_BACKEND

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok", "store": STORE_BACKEND}
