from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from searchapi.common.config import settings
from searchapi.common.errors import BackendError, EngineUnavailableError
from searchapi.engine.base import BulkResult, Document, EngineResult, MatchQuery, SearchEngine

log = logging.getLogger(__name__)


def render_minimum_should_match(n: int) -> str:
    # "1<n": a single optional clause must match, more than one needs n.
    if n <= 1:
        return "1"
    return f"1<{n}"


def render_query(query: MatchQuery) -> dict[str, Any]:
    return {
        "multi_match": {
            "query": query.text,
            "fields": list(query.fields),
            "fuzziness": str(query.fuzziness),
            "minimum_should_match": render_minimum_should_match(query.minimum_should_match),
        }
    }


class ElasticsearchEngine(SearchEngine):
    """Elasticsearch over its REST API (``_bulk`` and ``_search``)."""

    def __init__(
        self,
        base_url: str | None = None,
        index_name: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.index_name = index_name or settings.index_name
        self._client = client or httpx.Client(
            base_url=base_url or settings.elasticsearch_url,
            timeout=httpx.Timeout(settings.http_timeout_seconds),
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def ping(self) -> None:
        try:
            resp = self._client.get("/")
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise EngineUnavailableError(f"ping failed: {e}") from e

    def bulk_index(self, documents: list[Document]) -> BulkResult:
        lines: list[str] = []
        for doc in documents:
            lines.append(json.dumps({"index": {"_index": self.index_name, "_id": doc.id}}))
            lines.append(json.dumps(doc.to_source(), ensure_ascii=False))
        body = "\n".join(lines) + "\n"

        url = f"/{self.index_name}/_bulk"
        data = self._request(
            "POST",
            url,
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/x-ndjson"},
        )

        try:
            failed: list[dict[str, Any]] = []
            for item in data.get("items", []):
                result = item.get("index") or {}
                if "error" in result:
                    failed.append({"id": result.get("_id"), "error": result["error"]})
            took = int(data.get("took", 0))
        except (AttributeError, TypeError, ValueError) as e:
            raise BackendError(f"POST {url}: unexpected response shape: {e}") from e

        return BulkResult(
            took_ms=took,
            indexed=len(documents) - len(failed),
            failed_items=failed,
        )

    def search(self, query: MatchQuery, offset: int, limit: int) -> EngineResult:
        url = f"/{self.index_name}/_search"
        body = {"query": render_query(query), "from": offset, "size": limit}
        data = self._request("POST", url, json=body)

        try:
            hits_block = data.get("hits") or {}
            total = hits_block.get("total", 0)
            # 7.x+ reports {"value": n, "relation": "eq"}; older versions a bare int
            if isinstance(total, dict):
                total = total.get("value", 0)
            return EngineResult(
                took_ms=int(data.get("took", 0)),
                total_hits=int(total),
                hits=[h.get("_source") for h in hits_block.get("hits", [])],
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise BackendError(f"POST {url}: unexpected response shape: {e}") from e

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise BackendError(f"{method} {url}: {e}") from e

        if resp.status_code >= 400:
            raise BackendError(f"{method} {url}: http_{resp.status_code} {resp.text[:500]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise BackendError(f"{method} {url}: invalid JSON response") from e
        if not isinstance(data, dict):
            raise BackendError(f"{method} {url}: expected a JSON object, got {type(data).__name__}")
        return data
