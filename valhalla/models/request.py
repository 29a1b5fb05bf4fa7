"""Request model.

One row per inbound proxied call. Written once by the ingestion path and
never updated afterwards.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Request(Base):
    __tablename__ = "request"

    # Caller-supplied; the store does not generate request ids
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    url_href: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    properties: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    helicone_org_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    provider: Mapped[str] = mapped_column(String(100), nullable=False)
    body: Mapped[Optional[Any]] = mapped_column(JSONB, nullable=True)
    request_received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    model: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
