from __future__ import annotations

from fastapi import Request

from searchapi.engine.base import SearchEngine
from searchapi.ingest.ingestion import IngestionService
from searchapi.query.search_service import SearchService


def get_engine(request: Request) -> SearchEngine:
    return request.app.state.engine


def get_ingestion_service(request: Request) -> IngestionService:
    return IngestionService(get_engine(request))


def get_search_service(request: Request) -> SearchService:
    return SearchService(get_engine(request))
