"""
API Dependencies
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.container import ServiceContainer
from app.core.ratelimit import RateLimitDecision
from app.models.user import User
from app.services.anonymize import client_address
from app.services.auth import require_admin, require_user

# Missing credentials are our AuthError, not FastAPI's default 403
security_optional = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_client_address(request: Request) -> str:
    peer = request.client.host if request.client else None
    return client_address(request.headers, peer)


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
    container: ServiceContainer = Depends(get_container),
) -> User:
    """
    Get current authenticated user

    Raises:
        AuthError if the session token is missing or unknown
    """
    return require_user(container.users, _token(credentials))


def get_admin_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
    container: ServiceContainer = Depends(get_container),
) -> User:
    """Admin caller; ForbiddenError otherwise"""
    return require_admin(container.users, _token(credentials))


def enforce_ingest_limit(
    address: str = Depends(get_client_address),
    container: ServiceContainer = Depends(get_container),
) -> RateLimitDecision:
    return container.ingest_limiter.enforce(address)


def enforce_read_limit(
    address: str = Depends(get_client_address),
    container: ServiceContainer = Depends(get_container),
) -> RateLimitDecision:
    return container.read_limiter.enforce(address)
