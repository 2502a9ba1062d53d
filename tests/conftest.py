import json

import httpx
import pytest

from app.core.config import Settings
from app.models.response import RetrievalResult, ContextChunk


@pytest.fixture
def test_settings():
    return Settings(
        CLOUDFLARE_ACCOUNT_ID="acct",
        CLOUDFLARE_API_TOKEN="token",
        CLOUDFLARE_API_BASE_URL="https://cf.test/client/v4",
        RETRIEVAL_ENABLED=True,
        RETRIEVAL_MODE="search",
        STREAM_MODE="translate",
        SYSTEM_PROMPT="DEFAULT INSTRUCTION",
        LLM_MAX_TOKENS=256,
        LOG_FILE=None,
    )


class FakeRetriever:
    """Records queries; returns a canned result or raises."""

    def __init__(self, result=None, error=None):
        self.queries = []
        self.result = result
        self.error = error

    async def retrieve(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.result if self.result is not None else RetrievalResult(query=query)


@pytest.fixture
def context_result():
    return RetrievalResult(
        query="gfci",
        chunks=[ContextChunk(text="210.8 GFCI protection", source="nec-210.md", similarity_score=0.8)],
    )


class RecordingUpstream:
    """httpx.MockTransport handler standing in for Workers AI."""

    def __init__(self, body=b'data: {"response":"a"}\n\ndata: {"response":"b"}\n\ndata: [DONE]\n\n',
                 status_code=200, content_type="text/event-stream"):
        self.requests = []
        self.body = body
        self.status_code = status_code
        self.content_type = content_type

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(
            self.status_code,
            headers={"content-type": self.content_type},
            content=self.body,
        )

    @property
    def payloads(self):
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def upstream():
    return RecordingUpstream()
