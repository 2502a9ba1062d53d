import asyncio
import json

import httpx
import pytest

from app.rag.retriever import Retriever

SEARCH_BODY = {
    "success": True,
    "result": {
        "search_query": "gfci requirements garage",
        "data": [
            {
                "filename": "nec-210.md",
                "score": 0.82,
                "attributes": {"folder": "chapter-2/"},
                "content": [{"type": "text", "text": "210.8(A)(2) Garages"}],
            },
            {
                "filename": "empty.md",
                "score": 0.4,
                "content": [],
            },
        ],
    },
}


def _transport(body, status_code=200, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)
    return httpx.MockTransport(handler)


def test_search_sends_tuning_parameters_and_parses_chunks(test_settings):
    seen = []
    retriever = Retriever(config=test_settings, transport=_transport(SEARCH_BODY, seen=seen))

    result = asyncio.run(retriever.retrieve("gfci in garage?"))

    request = seen[0]
    assert str(request.url) == "https://cf.test/client/v4/accounts/acct/autorag/rags/electrical-code-rag/search"
    assert request.headers["authorization"] == "Bearer token"
    assert json.loads(request.content) == {
        "query": "gfci in garage?",
        "rewrite_query": True,
        "max_num_results": 5,
        "ranking_options": {"score_threshold": 0.3},
    }
    assert result.query == "gfci requirements garage"
    assert [c.text for c in result.chunks] == ["210.8(A)(2) Garages"]
    assert result.chunks[0].source == "nec-210.md"
    assert not result.is_empty


def test_ai_search_uses_generated_text(test_settings):
    body = {"success": True, "result": {"response": "Garages need GFCI.", "data": []}}
    seen = []
    retriever = Retriever(config=test_settings, transport=_transport(body, seen=seen), mode="ai_search")

    result = asyncio.run(retriever.retrieve("gfci?"))

    assert str(seen[0].url).endswith("/autorag/rags/electrical-code-rag/ai-search")
    assert result.text == "Garages need GFCI."


def test_http_error_is_raised(test_settings):
    retriever = Retriever(config=test_settings, transport=_transport({"success": False}, status_code=500))

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(retriever.retrieve("q"))


def test_malformed_body_is_raised(test_settings):
    retriever = Retriever(config=test_settings, transport=_transport({"unexpected": []}))

    with pytest.raises(ValueError):
        asyncio.run(retriever.retrieve("q"))


def test_empty_query_makes_no_call(test_settings):
    seen = []
    retriever = Retriever(config=test_settings, transport=_transport(SEARCH_BODY, seen=seen))

    result = asyncio.run(retriever.retrieve("   "))

    assert result.is_empty
    assert seen == []


def test_unknown_mode_is_rejected(test_settings):
    with pytest.raises(ValueError):
        Retriever(config=test_settings, mode="vector")
