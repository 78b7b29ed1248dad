"""
User/session repository for MongoDB operations

Sessions are written by the external sign-in component; the collector only
resolves them.
"""
import secrets
from datetime import timedelta
from typing import List, Optional

from app.core.database import DatabaseManager
from app.core.decorators import handle_db_errors, retry_on_error
from app.repositories.events import to_object_id, utcnow


class UserRepository:
    def __init__(self, db_manager: DatabaseManager):
        self.users = db_manager.get_collection("users")
        self.sessions = db_manager.get_collection("sessions")

    @retry_on_error(retries=3)
    @handle_db_errors
    def get_by_session_token(self, token: str) -> Optional[dict]:
        """User owning a live session token"""
        session = self.sessions.find_one({
            "token": token,
            "expires_at": {"$gt": utcnow()}
        })
        if not session:
            return None
        oid = to_object_id(session.get("user_id"))
        if oid is None:
            return None
        return self.users.find_one({"_id": oid})

    @handle_db_errors
    def create_user(self, email: str, roles: Optional[List[str]] = None, name: Optional[str] = None) -> dict:
        user = {
            "email": email,
            "name": name,
            "roles": roles or ["viewer"],
            "created_at": utcnow(),
        }
        result = self.users.insert_one(user)
        user["_id"] = result.inserted_id
        return user

    @handle_db_errors
    def create_session(self, user_id, ttl_seconds: int = 24 * 3600) -> str:
        """Issue a session token (used by seed/admin scripts and tests)"""
        token = secrets.token_urlsafe(32)
        self.sessions.insert_one({
            "token": token,
            "user_id": to_object_id(user_id),
            "created_at": utcnow(),
            "expires_at": utcnow() + timedelta(seconds=ttl_seconds),
        })
        return token
