from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from searchapi.api.deps import get_ingestion_service, get_search_service
from searchapi.api.middleware import request_logging_middleware
from searchapi.api.schemas import ErrorResponse, HealthResponse, SearchResponse
from searchapi.common.errors import SearchApiError
from searchapi.engine.base import SearchEngine
from searchapi.engine.bootstrap import connect_engine
from searchapi.ingest.ingestion import IngestionService, parse_submissions
from searchapi.query.search_service import SearchService

log = logging.getLogger(__name__)


def create_app(engine: SearchEngine | None = None) -> FastAPI:
    """Build the app around a connected engine.

    Without ``engine`` the app connects on startup, blocking until the
    configured backend answers, and closes it on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.engine is None
        if owned:
            app.state.engine = await run_in_threadpool(connect_engine)
        try:
            yield
        finally:
            if owned:
                app.state.engine.close()
                app.state.engine = None

    app = FastAPI(title="Search API", version="1.0.0", lifespan=lifespan)
    app.state.engine = engine

    app.middleware("http")(request_logging_middleware)

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post(
        "/documents",
        status_code=200,
        response_class=Response,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def create_documents(
        request: Request,
        svc: IngestionService = Depends(get_ingestion_service),
    ) -> Response:
        submissions = parse_submissions(await request.body())
        await run_in_threadpool(svc.create_documents, submissions)
        return Response(status_code=200)

    @app.get(
        "/search",
        response_model=SearchResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    def search(
        query: Optional[str] = None,
        skip: Optional[str] = None,
        take: Optional[str] = None,
        svc: SearchService = Depends(get_search_service),
    ) -> SearchResponse:
        result = svc.search(query, skip=skip, take=take)
        return SearchResponse(
            time=result.elapsed_millis,
            hits=result.total_hits,
            documents=[d.model_dump() for d in result.documents],
        )

    @app.exception_handler(SearchApiError)
    async def service_error_handler(_, exc: SearchApiError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_, exc: Exception):
        log.exception("unhandled_exception", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "internal_server_error"})

    return app
