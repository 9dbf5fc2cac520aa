"""
User accounts: CRUD for HR, login and password changes.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from app.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from app.core.timeutils import Clock, utc_now
from app.models.user import UserRole
from app.services import auth as auth_service
from app.store import USERS, Record, RecordStore

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "role", "department", "job_title", "email")


def public_user(user: Mapping[str, Any]) -> Dict[str, Any]:
    """Strip credentials before a user record leaves the service."""
    return {k: v for k, v in user.items() if k != "hashed_password"}


class UserService:
    def __init__(self, store: RecordStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or utc_now

    def get(self, user_id: str) -> Record:
        user = self.store.find_by_id(USERS, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list(self, role: Optional[UserRole] = None, ids: Optional[List[str]] = None) -> List[Record]:
        where: Dict[str, Any] = {}
        if role is not None:
            where["role"] = UserRole(role).value
        if ids is not None:
            where["id"] = list(ids)
        return self.store.find_many(USERS, where)

    def create(self, data: Mapping[str, Any]) -> Record:
        user_id = (data.get("id") or "").strip()
        if not user_id:
            raise ValidationError("User id is required")
        if not data.get("password"):
            raise ValidationError("Password is required")
        if self.store.find_by_id(USERS, user_id) is not None:
            raise ConflictError("User ID already exists")

        record = {k: data.get(k) for k in PROFILE_FIELDS}
        record["role"] = UserRole(record["role"]).value
        record["hashed_password"] = auth_service.get_password_hash(data["password"])
        record["created_at"] = self.clock()
        user = self.store.upsert(USERS, user_id, record)
        logger.info(f"Created user {user_id}", extra={"role": record["role"]})
        return user

    def update(self, user_id: str, data: Mapping[str, Any]) -> Record:
        self.get(user_id)
        if data.get("id") not in (None, user_id):
            raise ValidationError("User id cannot be changed")
        patch = {k: data[k] for k in PROFILE_FIELDS if data.get(k) is not None}
        if "role" in patch:
            patch["role"] = UserRole(patch["role"]).value
        if data.get("password"):
            patch["hashed_password"] = auth_service.get_password_hash(data["password"])
        return self.store.upsert(USERS, user_id, patch)

    def delete(self, user_id: str):
        if not self.store.delete(USERS, user_id):
            raise NotFoundError("User not found")
        logger.info(f"Deleted user {user_id}")

    def authenticate(self, user_id: str, password: str) -> Record:
        user = self.store.find_by_id(USERS, user_id)
        if user is None:
            raise AuthenticationError("Invalid credentials")
        valid, new_hash = auth_service.verify_and_update(password, user.get("hashed_password"))
        if not valid:
            raise AuthenticationError("Invalid credentials")
        if new_hash:
            user = self.store.upsert(USERS, user_id, {"hashed_password": new_hash})
        return user

    def change_password(self, user_id: str, current_password: str, new_password: str):
        user = self.get(user_id)
        if not auth_service.verify_password(current_password, user.get("hashed_password")):
            raise AuthenticationError("Invalid current password")
        if not new_password:
            raise ValidationError("New password is required")
        self.store.upsert(USERS, user_id, {"hashed_password": auth_service.get_password_hash(new_password)})
        logger.info(f"Password changed for {user_id}")
