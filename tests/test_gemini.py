import asyncio
import json
import logging

import httpx
import pytest

from conftest import PNG_BYTES
from media_relay.attachments import AttachmentPart
from media_relay.config import Settings
from media_relay.errors import ProviderError
from media_relay.providers.llm.gemini import GeminiClient


def _ok(texts: list[str]) -> dict:
    return {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": t} for t in texts]}, "finishReason": "STOP"}
        ]
    }


def _client(handler) -> GeminiClient:
    settings = Settings(GEMINI_API_KEY="secret", GEMINI_MODEL="gemini-1.5-flash")
    return GeminiClient(settings, transport=httpx.MockTransport(handler))


def test_generate_builds_request_and_joins_text() -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = request.url
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=_ok(["a ", "cat"]))

    part = AttachmentPart.from_bytes(PNG_BYTES, "image/png")
    text = asyncio.run(_client(handler).generate("Describe this image.", [part]))

    assert text == "a cat"
    assert captured["url"].path == "/v1beta/models/gemini-1.5-flash:generateContent"
    assert captured["url"].params["key"] == "secret"
    body = captured["body"]
    assert body["contents"] == [
        {
            "role": "user",
            "parts": [
                {"text": "Describe this image."},
                {"inlineData": {"mimeType": "image/png", "data": part.data}},
            ],
        }
    ]
    assert [s["category"] for s in body["safetySettings"]] == [
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    ]
    assert {s["threshold"] for s in body["safetySettings"]} == {"BLOCK_NONE"}


def test_text_only_request_has_single_part() -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=_ok(["hi"]))

    assert asyncio.run(_client(handler).generate("Say hi")) == "hi"
    assert captured["body"]["contents"][0]["parts"] == [{"text": "Say hi"}]


def test_error_status_raises_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "quota"}})

    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(_client(handler).generate("Say hi"))
    assert exc_info.value.status_code == 429
    assert "quota" in (exc_info.value.body or "")


def test_blocked_prompt_raises_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    with pytest.raises(ProviderError, match="SAFETY"):
        asyncio.run(_client(handler).generate("Say hi"))


def test_candidate_without_text_raises_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": [{"finishReason": "RECITATION"}]})

    with pytest.raises(ProviderError, match="RECITATION"):
        asyncio.run(_client(handler).generate("Say hi"))


def test_logs_never_contain_inline_data(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_ok(["ok"]))

    part = AttachmentPart.from_bytes(PNG_BYTES * 4, "image/png")
    with caplog.at_level(logging.DEBUG, logger="media_relay.providers.llm.gemini"):
        asyncio.run(_client(handler).generate("Describe this image.", [part]))

    messages = "\n".join(record.getMessage() for record in caplog.records)
    assert "gemini.request model=gemini-1.5-flash" in messages
    assert "b64 chars" in messages
    assert part.data not in messages
