"""
API Response Models
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TrackResponse(BaseModel):
    success: bool = True
    eventId: str


class ErrorResponse(BaseModel):
    """Standard error response"""
    success: bool = False
    error: str
    code: str
    details: Optional[Dict[str, Any]] = None


class PageStat(BaseModel):
    url: Optional[str] = None
    title: Optional[str] = None
    views: int = 0
    clicks: int = 0


class EventPage(BaseModel):
    id: str
    url: Optional[str] = None
    title: Optional[str] = None


class EventView(BaseModel):
    id: str
    eventType: str
    visitorHash: str
    userAgent: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    consentGiven: bool
    timestamp: str
    page: EventPage


class AggregateResponse(BaseModel):
    totalViews: int
    uniqueVisitors: int
    totalEvents: int
    pageStats: List[PageStat]
    recentEvents: List[EventView]


class ChatResponse(BaseModel):
    answer: str
    contextUsed: int
    usedVectorSearch: bool


class ErasureResponse(BaseModel):
    deleted: bool = True
    count: int


class ConsentResponse(BaseModel):
    success: bool = True
    consent: bool


class EmbeddingStatusResponse(BaseModel):
    indexed: int
    queue: Dict[str, int]


class HealthResponse(BaseModel):
    status: str
    db: bool
    timestamp: str
