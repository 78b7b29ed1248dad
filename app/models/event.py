"""
Event models
"""
import json
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.config import settings


class EventType(str, Enum):
    PAGEVIEW = "pageview"
    CLICK = "click"
    FORM_SUBMIT = "form_submit"


def serialize_metadata(metadata: Optional[Dict[str, Any]]) -> str:
    """Opaque storage form of event metadata"""
    return json.dumps(metadata or {}, default=str, separators=(",", ":"), sort_keys=True)


class TrackRequest(BaseModel):
    """Body of the tracking endpoint"""
    model_config = ConfigDict(populate_by_name=True)

    page: str = Field(..., max_length=2048)
    type: EventType
    metadata: Optional[Dict[str, Any]] = None
    consent_given: bool = Field(False, alias="consentGiven")
    title: Optional[str] = Field(None, max_length=512)

    @field_validator("page")
    @classmethod
    def validate_page_url(cls, v):
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("page must be an absolute http(s) URL")
        return v

    @field_validator("metadata")
    @classmethod
    def validate_metadata_size(cls, v):
        if v is None:
            return v
        size = len(serialize_metadata(v).encode("utf-8"))
        if size > settings.MAX_METADATA_BYTES:
            raise ValueError(
                f"metadata is {size} bytes, limit is {settings.MAX_METADATA_BYTES}"
            )
        return v


class ConsentAction(str, Enum):
    GRANT = "grant"
    REVOKE = "revoke"


class ConsentRequest(BaseModel):
    action: ConsentAction


class ChatRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=settings.CHAT_QUESTION_MAX_LENGTH)
