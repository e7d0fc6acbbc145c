import json

import httpx
import pytest

from searchapi.common.errors import BackendError, EngineUnavailableError
from searchapi.engine.base import Document
from searchapi.engine.elastic import ElasticsearchEngine, render_minimum_should_match
from searchapi.query.search_service import build_query


def _engine(handler):
    client = httpx.Client(base_url="http://es:9200", transport=httpx.MockTransport(handler))
    return ElasticsearchEngine(index_name="documents", client=client)


def _doc(i):
    return Document(id=f"id{i}", title=f"t{i}", content=f"c{i}", created_at="2025-01-01T00:00:00+00:00")


def test_bulk_index_sends_ndjson_with_ids():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["ctype"] = request.headers["content-type"]
        seen["lines"] = request.content.decode().strip().split("\n")
        return httpx.Response(200, json={"took": 3, "errors": False, "items": [{"index": {"_id": "id0"}}, {"index": {"_id": "id1"}}]})

    result = _engine(handler).bulk_index([_doc(0), _doc(1)])

    assert seen["path"] == "/documents/_bulk"
    assert seen["ctype"] == "application/x-ndjson"
    assert json.loads(seen["lines"][0]) == {"index": {"_index": "documents", "_id": "id0"}}
    assert json.loads(seen["lines"][1])["title"] == "t0"
    assert len(seen["lines"]) == 4
    assert result.indexed == 2
    assert result.failed_items == []


def test_bulk_index_reports_item_failures_without_raising():
    def handler(request):
        return httpx.Response(
            200,
            json={
                "took": 1,
                "errors": True,
                "items": [{"index": {"_id": "id0"}}, {"index": {"_id": "id1", "error": {"type": "mapper_parsing_exception"}}}],
            },
        )

    result = _engine(handler).bulk_index([_doc(0), _doc(1)])
    assert result.indexed == 1
    assert result.failed_items[0]["id"] == "id1"


def test_search_request_and_response_mapping():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "took": 7,
                "hits": {
                    "total": {"value": 42, "relation": "eq"},
                    "hits": [{"_id": "a", "_source": {"title": "A"}}, {"_id": "b", "_source": {"title": "B"}}],
                },
            },
        )

    result = _engine(handler).search(build_query("hello world"), offset=5, limit=3)

    assert seen["path"] == "/documents/_search"
    assert seen["body"] == {
        "query": {
            "multi_match": {
                "query": "hello world",
                "fields": ["title", "content"],
                "fuzziness": "2",
                "minimum_should_match": "1<2",
            }
        },
        "from": 5,
        "size": 3,
    }
    assert result.took_ms == 7
    assert result.total_hits == 42
    assert result.hits == [{"title": "A"}, {"title": "B"}]


def test_search_accepts_legacy_integer_total():
    def handler(request):
        return httpx.Response(200, json={"took": 1, "hits": {"total": 9, "hits": []}})

    assert _engine(handler).search(build_query("x"), 0, 10).total_hits == 9


def test_minimum_should_match_rendering():
    assert render_minimum_should_match(1) == "1"
    assert render_minimum_should_match(2) == "1<2"


def test_http_error_status_raises_backend_error():
    def handler(request):
        return httpx.Response(400, json={"error": {"type": "parsing_exception"}})

    with pytest.raises(BackendError):
        _engine(handler).search(build_query("x"), 0, 10)


def test_transport_error_raises_backend_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    engine = _engine(handler)
    with pytest.raises(BackendError):
        engine.bulk_index([_doc(0)])
    with pytest.raises(EngineUnavailableError):
        engine.ping()


@pytest.mark.parametrize("payload", [[1], "ok", 3])
def test_non_object_replies_raise_backend_error(payload):
    engine = _engine(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(BackendError):
        engine.search(build_query("x"), 0, 10)
    with pytest.raises(BackendError):
        engine.bulk_index([_doc(0)])


@pytest.mark.parametrize(
    "payload",
    [
        {"took": "fast", "hits": {"total": 1, "hits": []}},
        {"took": 1, "hits": {"total": {"value": None}, "hits": []}},
        {"took": 1, "hits": {"total": 1, "hits": ["not a hit"]}},
        {"took": 1, "hits": ["not a block"]},
    ],
)
def test_malformed_search_reply_raises_backend_error(payload):
    engine = _engine(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(BackendError):
        engine.search(build_query("x"), 0, 10)


@pytest.mark.parametrize(
    "payload",
    [
        {"took": None, "items": []},
        {"took": 1, "items": ["not an item"]},
        {"took": 1, "items": 5},
    ],
)
def test_malformed_bulk_reply_raises_backend_error(payload):
    engine = _engine(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(BackendError):
        engine.bulk_index([_doc(0)])
