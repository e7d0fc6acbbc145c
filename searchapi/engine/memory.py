from __future__ import annotations

import threading
import time

from searchapi.common.errors import BackendError
from searchapi.common.tokenizer import edit_distance, tokenize
from searchapi.engine.base import BulkResult, Document, EngineResult, MatchQuery, SearchEngine


class MemoryEngine(SearchEngine):
    """In-process engine with the same fuzzy multi-field semantics.

    Scoring mirrors a ``best_fields`` multi-match: each field is matched on its
    own, a field matches when enough query terms are found within the edit
    distance, and the document takes its best field's score. Exact term hits
    weigh more than fuzzy ones.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._docs: dict[str, dict] = {}

    def ping(self) -> None:
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._docs)

    def get(self, doc_id: str) -> dict | None:
        with self._lock:
            return self._docs.get(doc_id)

    def bulk_index(self, documents: list[Document]) -> BulkResult:
        start = time.perf_counter()
        with self._lock:
            for doc in documents:
                self._docs[doc.id] = doc.to_source()
        return BulkResult(took_ms=_elapsed_ms(start), indexed=len(documents))

    def search(self, query: MatchQuery, offset: int, limit: int) -> EngineResult:
        if offset < 0:
            raise BackendError("[from] parameter cannot be negative")
        if limit < 0:
            raise BackendError("[size] parameter cannot be negative")

        start = time.perf_counter()
        terms = tokenize(query.text)
        with self._lock:
            sources = list(self._docs.values())

        scored: list[tuple[float, int, dict]] = []
        for pos, src in enumerate(sources):
            score = self._score(src, terms, query)
            if score > 0:
                scored.append((score, pos, src))

        # relevance desc, insertion order breaks ties
        scored.sort(key=lambda t: (-t[0], t[1]))
        page = scored[offset : offset + limit]
        return EngineResult(
            took_ms=_elapsed_ms(start),
            total_hits=len(scored),
            hits=[src for _, _, src in page],
        )

    def _score(self, src: dict, terms: list[str], query: MatchQuery) -> float:
        if not terms:
            return 0.0
        required = min(query.minimum_should_match, len(terms))

        best = 0.0
        for field_name in query.fields:
            tokens = tokenize(str(src.get(field_name) or ""))
            if not tokens:
                continue
            matched = 0
            field_score = 0.0
            for term in terms:
                dist = min(edit_distance(term, tok, limit=query.fuzziness) for tok in tokens)
                if dist <= query.fuzziness:
                    matched += 1
                    field_score += 1.0 / (1 + dist)
            if matched >= required:
                best = max(best, field_score)
        return best


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000.0)
