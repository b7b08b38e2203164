from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.modules.generation.models import SummaryLength


class SummaryRequest(BaseModel):
    content: Optional[str] = Field(None, description="Text to summarise")
    model: Optional[str] = "auto"
    length: SummaryLength = SummaryLength.MEDIUM


class SummaryResponse(BaseModel):
    summary: str


class SummaryCreate(BaseModel):
    source_text: Optional[str] = Field(None, description="Text to summarise and keep")
    title: Optional[str] = Field(None, max_length=200)
    length: SummaryLength = SummaryLength.MEDIUM
    model: Optional[str] = "auto"


class SummaryCreated(BaseModel):
    id: int
    title: str


class SummaryRead(BaseModel):
    id: int
    title: str
    summary_text: str
    source_text: str
    length: SummaryLength
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SummaryPage(BaseModel):
    summaries: list[SummaryRead]
    total: int
    skip: int
    take: int
    has_more: bool
