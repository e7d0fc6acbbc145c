from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    error: str


class DocumentResponse(BaseModel):
    title: str
    created_at: datetime
    content: str


class SearchResponse(BaseModel):
    time: str
    hits: str
    documents: list[DocumentResponse]
