from __future__ import annotations

import logging
from pathlib import Path

import typer
import uvicorn

from searchapi.api.main import create_app
from searchapi.common.config import settings
from searchapi.common.errors import SearchApiError
from searchapi.common.logging import setup_logging
from searchapi.engine.bootstrap import EngineBackend, connect_engine
from searchapi.ingest.ingestion import IngestionService, parse_submissions

app = typer.Typer(add_completion=False, help="Search API service CLI")


@app.command()
def ingest(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON array of {title, content} objects"),
    backend: EngineBackend = typer.Option(EngineBackend(settings.engine_backend), help="Engine backend"),
) -> None:
    """Bulk-load documents from a JSON file."""
    setup_logging()
    log = logging.getLogger("searchapi.cli")

    engine = connect_engine(backend.value)
    try:
        submissions = parse_submissions(file.read_bytes())
        docs = IngestionService(engine).create_documents(submissions)
        log.info("ingest_done", extra={"doc_count": len(docs)})
    except SearchApiError as e:
        log.error("ingest_failed", extra={"error": e.detail or str(e)})
        raise typer.Exit(code=1) from e
    finally:
        engine.close()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8080, help="Port to bind"),
    log_level: str = typer.Option("info", help="Uvicorn log level"),
    backend: EngineBackend = typer.Option(EngineBackend(settings.engine_backend), help="Engine backend"),
) -> None:
    """Wait for the search engine, then run the FastAPI service."""
    setup_logging()
    logging.getLogger("searchapi.cli").info("engine_connecting", extra={"backend": backend.value})

    engine = connect_engine(backend.value)
    try:
        uvicorn.run(create_app(engine), host=host, port=port, log_level=log_level)
    finally:
        engine.close()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
