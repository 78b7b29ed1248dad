"""
Embedding pipeline status API
"""
from fastapi import APIRouter, Depends

from app.core.container import ServiceContainer
from ..deps import get_admin_user, get_container
from ..models import EmbeddingStatusResponse

router = APIRouter()


@router.get("/status", response_model=EmbeddingStatusResponse, dependencies=[Depends(get_admin_user)])
def embedding_status(container: ServiceContainer = Depends(get_container)):
    """Index size and worker pool counters"""
    return {
        "indexed": container.index.count(),
        "queue": container.embedding_queue.stats(),
    }
