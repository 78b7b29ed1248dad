"""
Event tracking API
"""
from fastapi import APIRouter, Depends, Header

from app.core.container import ServiceContainer
from app.models.event import TrackRequest
from ..deps import enforce_ingest_limit, get_client_address, get_container
from ..models import ErrorResponse, TrackResponse

router = APIRouter()


@router.post(
    "",
    response_model=TrackResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    dependencies=[Depends(enforce_ingest_limit)],
)
def track_event(
    body: TrackRequest,
    address: str = Depends(get_client_address),
    user_agent: str = Header(default=""),
    container: ServiceContainer = Depends(get_container),
):
    """
    Record one visitor action
    """
    event_id = container.ingest.track(body, address=address, user_agent=user_agent)
    return {"success": True, "eventId": event_id}
