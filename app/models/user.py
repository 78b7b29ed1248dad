"""
User models
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.config import settings


class User(BaseModel):
    """Authenticated caller, as resolved from a session token"""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    roles: List[str] = Field(default_factory=lambda: ["viewer"])

    @property
    def is_admin(self) -> bool:
        return settings.ADMIN_ROLE in self.roles
