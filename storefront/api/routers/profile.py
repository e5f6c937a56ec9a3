from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.data.database import get_store
from storefront.data.store import KeyValueStore
from storefront.domain.errors import ProfileNotFound
from storefront.domain.schemas import ProfileOut, ProfileUpdateIn
from storefront.services.profile_service import ProfileService

router = APIRouter(prefix="/profile", tags=["profile"])


def get_service(store: KeyValueStore = Depends(get_store)) -> ProfileService:
    return ProfileService(store)


@router.get("", response_model=ProfileOut)
def get_my_profile(
    user_id: str = Query(...),
    role: str = Query("user"),
    svc: ProfileService = Depends(get_service),
):
    try:
        return {"profile": svc.get_profile(user_id, role)}
    except ProfileNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("", response_model=ProfileOut)
def update_my_profile(
    payload: ProfileUpdateIn,
    user_id: str = Query(...),
    role: str = Query("user"),
    svc: ProfileService = Depends(get_service),
):
    try:
        return {"profile": svc.update_profile(user_id, role, payload)}
    except ProfileNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
