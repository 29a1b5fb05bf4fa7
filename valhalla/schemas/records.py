from pydantic import BaseModel, Field
from typing import Any, Optional
import uuid
from datetime import datetime


class ValhallaRequest(BaseModel):
    id: uuid.UUID  # caller-supplied, never generated by the store
    created_at: datetime
    url_href: str
    user_id: Optional[str] = None
    properties: dict[str, Any] = Field(default_factory=dict, description="Custom request properties, stored as JSON")
    organization_id: Optional[str] = None
    provider: str
    body: Any = Field(default=None, description="Request payload, stored as JSON")
    request_received_at: datetime
    model: Optional[str] = None


class ValhallaResponse(BaseModel):
    id: uuid.UUID
    created_at: datetime
    body: Any = Field(default=None, description="Response payload, stored as JSON")
    request: uuid.UUID  # request.id this response answers
    delay_ms: Optional[int] = Field(default=None, ge=0)
    http_status: Optional[int] = None
    completion_tokens: Optional[int] = Field(default=None, ge=0)
    model: Optional[str] = None
    prompt_tokens: Optional[int] = Field(default=None, ge=0)
    response_received_at: Optional[datetime] = None  # null until the upstream call completes
    organization_id: Optional[str] = None


class ValhallaFeedback(BaseModel):
    response_id: uuid.UUID
    rating: int
    created_at: datetime
