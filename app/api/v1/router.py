"""
API Router Factory
Provides centralized router creation and configuration
"""
from typing import List, Optional

from fastapi import APIRouter

from app.core.config import settings
from .endpoints import chat, consent, embeddings, events, track, users


def create_router(
    prefix: str = settings.API_V1_STR,
    tags: Optional[List[str]] = None,
) -> APIRouter:
    """
    Create configured API router with all endpoints

    Args:
        prefix: API route prefix
        tags: OpenAPI tags

    Returns:
        Configured APIRouter instance
    """
    if tags is None:
        tags = ["api"]

    router = APIRouter(prefix=prefix, tags=tags)

    # Collection
    router.include_router(track.router, prefix="/track", tags=["tracking"])
    router.include_router(consent.router, prefix="/consent", tags=["tracking"])

    # Analytics
    router.include_router(events.router, prefix="/events", tags=["analytics"])
    router.include_router(chat.router, prefix="/chat", tags=["insights"])
    router.include_router(embeddings.router, prefix="/embeddings", tags=["insights"])

    # Privacy
    router.include_router(users.router, prefix="/users", tags=["privacy"])

    return router
