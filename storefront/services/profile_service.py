from datetime import datetime, timezone

from storefront.data.store import ConditionFailed, KeyValueStore
from storefront.domain.errors import ProfileNotFound
from storefront.domain.schemas import Profile, ProfileUpdateIn
from storefront.repos.profile_repo import ProfileRepo


class ProfileService:
    def __init__(self, store: KeyValueStore):
        self.repo = ProfileRepo(store)

    def get_profile(self, user_id: str, role: str) -> Profile:
        profile = self.repo.get_profile(user_id, role)
        if not profile:
            raise ProfileNotFound(user_id)
        return profile

    def update_profile(self, user_id: str, role: str, payload: ProfileUpdateIn) -> Profile:
        # tylko podane, niepuste pola
        changes = {k: v for k, v in payload.model_dump(by_alias=True).items() if v}
        if not changes:
            raise ValueError("No fields to update")
        changes["updatedAt"] = datetime.now(timezone.utc).isoformat()

        try:
            return self.repo.update_profile(user_id, role, changes)
        except ConditionFailed as e:
            raise ProfileNotFound(user_id) from e
