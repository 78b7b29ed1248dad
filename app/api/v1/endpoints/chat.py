"""
Question answering API
"""
from fastapi import APIRouter, Depends

from app.core.container import ServiceContainer
from app.models.event import ChatRequest
from ..deps import enforce_read_limit, get_container, get_current_user
from ..models import ChatResponse, ErrorResponse

router = APIRouter()


@router.post(
    "",
    response_model=ChatResponse,
    responses={503: {"model": ErrorResponse}},
    dependencies=[Depends(enforce_read_limit), Depends(get_current_user)],
)
def ask_question(
    body: ChatRequest,
    container: ServiceContainer = Depends(get_container),
):
    """
    Answer a natural-language question about the tracked traffic
    """
    result = container.insights.answer(body.question)
    return {
        "answer": result.text,
        "contextUsed": result.context_size,
        "usedVectorSearch": result.used_semantic_retrieval,
    }
