"""
Embedding Client Tests

The Gemini embedding endpoint is stubbed with httpx.MockTransport; no network
access is required.
"""

import asyncio
import json

import httpx
import pytest

from rag_chat_server.core.errors import EmbeddingFailedError, ServiceTimeoutError
from rag_chat_server.embeddings.embedder import (
    MAX_EMBED_CHARS,
    Embedder,
    normalize_embedding_input,
)


def make_embedder(handler, api_key="test-key"):
    return Embedder(
        api_key=api_key,
        model="text-embedding-004",
        base_url="https://example.test/v1beta",
        timeout=5.0,
        max_concurrency=2,
        transport=httpx.MockTransport(handler),
    )


def test_normalize_embedding_input():
    assert normalize_embedding_input("  a\x00b  ") == "a b"
    assert normalize_embedding_input(None) == ""
    assert len(normalize_embedding_input("z" * (MAX_EMBED_CHARS + 1))) == MAX_EMBED_CHARS


@pytest.mark.asyncio
async def test_embed_sends_gemini_request():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"embedding": {"values": [0.1, 2, -0.5]}})

    vector = await make_embedder(handler).embed("  hello\x00world ")

    assert vector == [0.1, 2.0, -0.5]
    assert seen["url"] == "https://example.test/v1beta/models/text-embedding-004:embedContent"
    assert seen["key"] == "test-key"
    assert seen["body"] == {
        "model": "models/text-embedding-004",
        "content": {"parts": [{"text": "hello world"}]},
    }


@pytest.mark.asyncio
async def test_missing_credential_fails_without_request():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(EmbeddingFailedError):
        await make_embedder(handler, api_key="").embed("text")


@pytest.mark.asyncio
async def test_empty_input_fails_without_request():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(EmbeddingFailedError):
        await make_embedder(handler).embed(" \x00 ")


@pytest.mark.asyncio
async def test_http_error_status():
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "bad"}})

    with pytest.raises(EmbeddingFailedError):
        await make_embedder(handler).embed("text")


@pytest.mark.asyncio
async def test_connection_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(EmbeddingFailedError):
        await make_embedder(handler).embed("text")


@pytest.mark.asyncio
async def test_timeout_maps_to_service_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ServiceTimeoutError) as info:
        await make_embedder(handler).embed("text")

    assert info.value.status_code == 504


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"embedding": []},
        {"embedding": {"values": []}},
        {"embedding": {"values": ["a", "b"]}},
        {"embedding": {"values": [True, 1.0]}},
    ],
)
async def test_malformed_response(payload):
    def handler(request):
        return httpx.Response(200, json=payload)

    with pytest.raises(EmbeddingFailedError):
        await make_embedder(handler).embed("text")


@pytest.mark.asyncio
async def test_non_json_response():
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(EmbeddingFailedError):
        await make_embedder(handler).embed("text")


@pytest.mark.asyncio
async def test_concurrent_requests_are_capped():
    state = {"in_flight": 0, "peak": 0}

    async def handler(request):
        state["in_flight"] += 1
        state["peak"] = max(state["peak"], state["in_flight"])
        await asyncio.sleep(0.02)
        state["in_flight"] -= 1
        return httpx.Response(200, json={"embedding": {"values": [1.0]}})

    embedder = make_embedder(handler)  # max_concurrency=2

    vectors = await asyncio.gather(*(embedder.embed(f"text {i}") for i in range(6)))

    assert len(vectors) == 6
    assert state["peak"] == 2
