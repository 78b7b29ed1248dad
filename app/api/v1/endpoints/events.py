"""
Aggregate analytics API
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.container import ServiceContainer
from app.core.errors import ValidationError
from ..deps import enforce_read_limit, get_container, get_current_user
from ..models import AggregateResponse

router = APIRouter()


@router.get(
    "",
    response_model=AggregateResponse,
    dependencies=[Depends(enforce_read_limit), Depends(get_current_user)],
)
def get_aggregates(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    container: ServiceContainer = Depends(get_container),
):
    """
    Views, unique visitors and per-page stats over consented events
    """
    if start_date and end_date and start_date > end_date:
        raise ValidationError("startDate must not be after endDate")
    return container.analytics.get_aggregates(start_date, end_date)
