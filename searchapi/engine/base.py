from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Document:
    id: str
    title: str
    content: str
    created_at: str  # ISO-8601, UTC

    def to_source(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at,
            "content": self.content,
        }


@dataclass(frozen=True)
class MatchQuery:
    """Fuzzy multi-field match, in engine-neutral form."""

    text: str
    fields: tuple[str, ...]
    fuzziness: int
    minimum_should_match: int


@dataclass(frozen=True)
class BulkResult:
    took_ms: int
    indexed: int
    failed_items: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class EngineResult:
    took_ms: int
    total_hits: int
    hits: list[Any]  # raw per-hit source payloads, relevance order


class SearchEngine(ABC):
    """Full-text engine seam; failures surface as ``BackendError``."""

    @abstractmethod
    def ping(self) -> None:
        """Raise if the engine cannot be reached."""

    @abstractmethod
    def bulk_index(self, documents: list[Document]) -> BulkResult:
        ...

    @abstractmethod
    def search(self, query: MatchQuery, offset: int, limit: int) -> EngineResult:
        ...

    def close(self) -> None:
        return None
