from __future__ import annotations

import base64
import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from searchapi.common.errors import BackendError, IndexingError, ValidationError
from searchapi.engine.base import Document, SearchEngine

log = logging.getLogger(__name__)


class DocumentSubmission(BaseModel):
    title: str = ""
    content: str = ""


_SUBMISSIONS = TypeAdapter(list[DocumentSubmission])


def parse_submissions(raw: bytes | str) -> list[DocumentSubmission]:
    """Parse a JSON array of ``{title, content}`` objects."""
    try:
        return _SUBMISSIONS.validate_json(raw)
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e


def new_document_id() -> str:
    # 22 url-safe chars from a random uuid4
    return base64.urlsafe_b64encode(uuid.uuid4().bytes).rstrip(b"=").decode("ascii")


class IngestionService:
    def __init__(self, engine: SearchEngine):
        self.engine = engine

    def create_documents(self, submissions: Iterable[DocumentSubmission]) -> list[Document]:
        docs = [
            Document(
                id=new_document_id(),
                title=s.title,
                content=s.content,
                created_at=datetime.now(timezone.utc).isoformat(),
            )
            for s in submissions
        ]
        if not docs:
            return []

        try:
            result = self.engine.bulk_index(docs)
        except BackendError as e:
            log.error("bulk_index_failed", extra={"doc_count": len(docs), "error": e.detail or str(e)})
            raise IndexingError(e.detail or str(e)) from e

        if result.failed_items:
            # partial application is not an error for the request
            log.warning(
                "bulk_index_partial",
                extra={"doc_count": len(docs), "failed_items": len(result.failed_items)},
            )
        log.info("documents_indexed", extra={"doc_count": result.indexed})
        return docs
