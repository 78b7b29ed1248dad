"""
Consent acknowledgement API

Consent is carried per event by the tracker; this endpoint only confirms the
visitor's choice back to the banner.
"""
from fastapi import APIRouter

from app.models.event import ConsentAction, ConsentRequest
from ..models import ConsentResponse

router = APIRouter()


@router.post("", response_model=ConsentResponse)
def record_consent(body: ConsentRequest):
    return {"success": True, "consent": body.action == ConsentAction.GRANT}
