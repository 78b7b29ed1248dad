"""
Visitor data erasure API
"""
from fastapi import APIRouter, Depends

from app.core.container import ServiceContainer
from ..deps import get_admin_user, get_container
from ..models import ErasureResponse, ErrorResponse

router = APIRouter()


@router.delete(
    "/{fingerprint}/delete",
    response_model=ErasureResponse,
    responses={403: {"model": ErrorResponse}},
    dependencies=[Depends(get_admin_user)],
)
def erase_visitor(
    fingerprint: str,
    container: ServiceContainer = Depends(get_container),
):
    """
    Permanently delete every event tied to one visitor fingerprint
    """
    count = container.privacy.erase_visitor(fingerprint)
    return {"deleted": True, "count": count}
