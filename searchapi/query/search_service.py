from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from searchapi.common.config import settings
from searchapi.common.errors import BackendError, QueryError, ValidationError
from searchapi.engine.base import MatchQuery, SearchEngine

log = logging.getLogger(__name__)

SEARCH_FIELDS = ("title", "content")
FUZZINESS = 2
MINIMUM_SHOULD_MATCH = 2

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1


class ProjectedDocument(BaseModel):
    title: str
    created_at: datetime
    content: str


@dataclass(frozen=True)
class SearchResult:
    elapsed_millis: str
    total_hits: str
    documents: list[ProjectedDocument]


def parse_int_or_default(raw: str | None, default: int) -> int:
    """DefaultOnParseFailure: anything that is not a plain integer yields ``default``.

    Values are not clamped; a negative or zero result is passed on as-is.
    """
    if raw is None or not _INT_RE.fullmatch(raw):
        return default
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return default
    return value


def parse_pagination(skip: str | None, take: str | None) -> tuple[int, int]:
    return (
        parse_int_or_default(skip, settings.default_skip),
        parse_int_or_default(take, settings.default_take),
    )


def build_query(text: str) -> MatchQuery:
    return MatchQuery(
        text=text,
        fields=SEARCH_FIELDS,
        fuzziness=FUZZINESS,
        minimum_should_match=MINIMUM_SHOULD_MATCH,
    )


def project_hits(hits: list) -> list[ProjectedDocument]:
    """SkipOnDeserializeFailure: a hit whose source does not fit is dropped."""
    out: list[ProjectedDocument] = []
    for src in hits:
        try:
            out.append(ProjectedDocument.model_validate(src))
        except PydanticValidationError as e:
            log.debug("hit_skipped", extra={"error": str(e)})
    return out


class SearchService:
    def __init__(self, engine: SearchEngine):
        self.engine = engine

    def search(self, query: str | None, skip: str | None = None, take: str | None = None) -> SearchResult:
        if not query:
            raise ValidationError("empty query", public_message="Query not specified")
        offset, limit = parse_pagination(skip, take)

        try:
            result = self.engine.search(build_query(query), offset=offset, limit=limit)
        except BackendError as e:
            log.error("search_failed", extra={"error": e.detail or str(e)})
            raise QueryError(e.detail or str(e)) from e

        return SearchResult(
            elapsed_millis=str(result.took_ms),
            total_hits=str(result.total_hits),
            documents=project_hits(result.hits),
        )
