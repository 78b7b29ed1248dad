"""
Caller identity resolution.

Sign-in happens elsewhere; this module only maps an opaque bearer session
token to a ``User`` and checks roles.
"""
from typing import Optional

from app.core.errors import AuthError, ForbiddenError
from app.models.user import User
from app.repositories.users import UserRepository


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    raw = (authorization or "").strip()
    if raw.lower().startswith("bearer "):
        raw = raw[7:].strip()
    return raw or None


def get_user_by_token(users: UserRepository, token: Optional[str]) -> Optional[User]:
    """User for a live session token, or None"""
    if not token:
        return None
    doc = users.get_by_session_token(token)
    if not doc:
        return None
    return User(
        id=str(doc["_id"]),
        email=doc.get("email"),
        name=doc.get("name"),
        roles=list(doc.get("roles") or ["viewer"]),
    )


def require_user(users: UserRepository, token: Optional[str]) -> User:
    user = get_user_by_token(users, token)
    if user is None:
        raise AuthError("Unauthorized")
    return user


def require_admin(users: UserRepository, token: Optional[str]) -> User:
    """Admin caller or 403, including for anonymous callers"""
    user = get_user_by_token(users, token)
    if user is None or not user.is_admin:
        raise ForbiddenError("Forbidden")
    return user
