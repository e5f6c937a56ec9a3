from typing import Any, Dict

from storefront.data.store import KeyValueStore
from storefront.data.tables import USERS
from storefront.domain.schemas import Profile


class ProfileRepo:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def get_profile(self, user_id: str, role: str) -> Profile | None:
        item = self.store.get(USERS.name, {"userId": user_id, "role": role})
        return Profile.model_validate(item) if item else None

    def update_profile(self, user_id: str, role: str, changes: Dict[str, Any]) -> Profile:
        item = self.store.update(USERS.name, {"userId": user_id, "role": role}, sets=changes)
        return Profile.model_validate(item)
