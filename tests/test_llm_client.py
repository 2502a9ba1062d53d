import asyncio

import httpx
import pytest

from conftest import RecordingUpstream

from app.llm.client import LLMClientFactory, WorkersAIClient
from app.models.request import ChatMessage


def _messages():
    return [
        ChatMessage(role="system", content="DEFAULT INSTRUCTION"),
        ChatMessage(role="user", content="hi"),
        ChatMessage(role="context", content="excerpt"),
    ]


def _open(client, messages, **kwargs):
    async def run():
        response = await client.open_stream(messages, **kwargs)
        body = None
        if response is not None:
            body = await response.aread()
            await response.aclose()
        return response, body
    return asyncio.run(run())


def test_open_stream_posts_messages_and_returns_event_stream(test_settings, upstream):
    client = WorkersAIClient(config=test_settings, transport=httpx.MockTransport(upstream))

    response, body = _open(client, _messages(), max_tokens=128)

    request = upstream.requests[0]
    assert str(request.url) == (
        "https://cf.test/client/v4/accounts/acct/ai/run/@cf/meta/llama-3.3-70b-instruct-fp8-fast"
    )
    assert request.headers["authorization"] == "Bearer token"
    assert upstream.payloads[0] == {
        "messages": [
            {"role": "system", "content": "DEFAULT INSTRUCTION"},
            {"role": "user", "content": "hi"},
            {"role": "system", "content": "excerpt"},
        ],
        "max_tokens": 128,
        "stream": True,
    }
    assert response.status_code == 200
    assert body.startswith(b'data: {"response":"a"}')


def test_default_token_ceiling_comes_from_settings(test_settings, upstream):
    client = WorkersAIClient(config=test_settings, transport=httpx.MockTransport(upstream))

    _open(client, _messages())

    assert upstream.payloads[0]["max_tokens"] == 256


def test_non_stream_response_yields_none(test_settings):
    upstream = RecordingUpstream(body=b'{"result":{"response":"hi"}}', content_type="application/json")
    client = WorkersAIClient(config=test_settings, transport=httpx.MockTransport(upstream))

    response, _ = _open(client, _messages())

    assert response is None


def test_error_status_is_raised(test_settings):
    upstream = RecordingUpstream(body=b'{"errors":[{"message":"bad token"}]}', status_code=401,
                                 content_type="application/json")
    client = WorkersAIClient(config=test_settings, transport=httpx.MockTransport(upstream))

    with pytest.raises(httpx.HTTPStatusError):
        _open(client, _messages())


def test_factory_rejects_unknown_client():
    with pytest.raises(ValueError):
        LLMClientFactory.create_client("ollama")


def _generate(client, messages, **kwargs):
    async def run():
        try:
            return await client.generate(messages, **kwargs)
        finally:
            await client.aclose()
    return asyncio.run(run())


def test_generate_returns_structured_completion(test_settings):
    upstream = RecordingUpstream(body=b'{"result":{"response":"  Use 12 AWG.  "},"success":true}',
                                 content_type="application/json")
    client = WorkersAIClient(config=test_settings, transport=httpx.MockTransport(upstream))

    text = _generate(client, _messages(), max_tokens=64)

    assert text == "Use 12 AWG."
    assert upstream.payloads[0]["stream"] is False
    assert upstream.payloads[0]["max_tokens"] == 64
    assert upstream.payloads[0]["messages"][2] == {"role": "system", "content": "excerpt"}


def test_generate_rejects_body_without_response(test_settings):
    upstream = RecordingUpstream(body=b'{"result":{},"success":true}', content_type="application/json")
    client = WorkersAIClient(config=test_settings, transport=httpx.MockTransport(upstream))

    with pytest.raises(ValueError):
        _generate(client, _messages())


def test_generate_error_status_is_raised(test_settings):
    upstream = RecordingUpstream(body=b'{"errors":[]}', status_code=500, content_type="application/json")
    client = WorkersAIClient(config=test_settings, transport=httpx.MockTransport(upstream))

    with pytest.raises(httpx.HTTPStatusError):
        _generate(client, _messages())
