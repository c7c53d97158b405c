"""
Completion Client Tests
"""

import asyncio
import json

import httpx
import pytest

from rag_chat_server.core.errors import CompletionFailedError, ServiceTimeoutError
from rag_chat_server.llm.client import LLMClient


def make_client(handler, api_key="test-key"):
    return LLMClient(
        api_key=api_key,
        base_url="https://example.test/v1beta/",
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


def gemini_reply(*texts):
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": t} for t in texts]}}]}


@pytest.mark.asyncio
async def test_complete_sends_history_prompt_and_instruction():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_reply("Hello ", "there"))

    history = [
        {"role": "user", "content": "hi"},
        {"role": "model", "content": "hello"},
    ]
    text = await make_client(handler).complete(
        history,
        "what now?",
        model="gemini-1.5-flash",
        system_instruction="Use the context.",
    )

    assert text == "Hello there"
    assert seen["url"] == "https://example.test/v1beta/models/gemini-1.5-flash:generateContent"
    assert seen["body"]["contents"] == [
        {"role": "user", "parts": [{"text": "hi"}]},
        {"role": "model", "parts": [{"text": "hello"}]},
        {"role": "user", "parts": [{"text": "what now?"}]},
    ]
    assert seen["body"]["systemInstruction"] == {"parts": [{"text": "Use the context."}]}


@pytest.mark.asyncio
async def test_no_instruction_is_omitted():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_reply("ok"))

    await make_client(handler).complete([], "question")

    assert "systemInstruction" not in seen["body"]
    assert len(seen["body"]["contents"]) == 1


@pytest.mark.asyncio
async def test_no_candidates_returns_empty_text():
    def handler(request):
        return httpx.Response(200, json={"candidates": []})

    assert await make_client(handler).complete([], "q") == ""


@pytest.mark.asyncio
async def test_missing_credential():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(CompletionFailedError):
        await make_client(handler, api_key="").complete([], "q")


@pytest.mark.asyncio
async def test_server_error():
    def handler(request):
        return httpx.Response(503, json={"error": "unavailable"})

    with pytest.raises(CompletionFailedError):
        await make_client(handler).complete([], "q")


@pytest.mark.asyncio
async def test_timeout():
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    with pytest.raises(ServiceTimeoutError):
        await make_client(handler).complete([], "q")


@pytest.mark.asyncio
async def test_malformed_response():
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(CompletionFailedError):
        await make_client(handler).complete([], "q")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"candidates": ["oops"]},
        {"candidates": [{"content": ["not", "an", "object"]}]},
        {"candidates": [{"content": {"parts": "text"}}]},
        {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
    ],
)
async def test_malformed_candidate_structure(payload):
    def handler(request):
        return httpx.Response(200, json=payload)

    with pytest.raises(CompletionFailedError):
        await make_client(handler).complete([], "q")


@pytest.mark.asyncio
async def test_concurrent_completions_are_capped():
    state = {"in_flight": 0, "peak": 0}

    async def handler(request):
        state["in_flight"] += 1
        state["peak"] = max(state["peak"], state["in_flight"])
        await asyncio.sleep(0.02)
        state["in_flight"] -= 1
        return httpx.Response(200, json=gemini_reply("ok"))

    client = LLMClient(
        api_key="test-key",
        base_url="https://example.test/v1beta",
        max_concurrency=2,
        transport=httpx.MockTransport(handler),
    )

    texts = await asyncio.gather(*(client.complete([], f"q{i}") for i in range(5)))

    assert texts == ["ok"] * 5
    assert state["peak"] == 2
