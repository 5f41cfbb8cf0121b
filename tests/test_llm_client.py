"""Tests for the LLMClient, mocking the OpenAI SDK to test calls and retries."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from openai import APIConnectionError

from forge.shared import llm_client
from forge.shared.llm_client import DRY_RUN_IMAGE_URL, DryRunClient, LLMClient
from forge.services.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    RESEARCH_SYSTEM_PROMPT,
    SITE_CODE_SYSTEM_PROMPT,
)


def _make_text_response(text: str | None):
    """Create a mock chat completion response."""
    message = SimpleNamespace(content=text)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _make_image_response(url: str | None = None, b64_json: str | None = None):
    return SimpleNamespace(data=[SimpleNamespace(url=url, b64_json=b64_json)])


def _client() -> LLMClient:
    client = LLMClient.__new__(LLMClient)
    client._client = AsyncMock()
    client.text_model = "gpt-test"
    client.image_model = "image-test"
    return client


class TestCompletions:
    @pytest.mark.asyncio
    async def test_simple_completion_returns_text(self) -> None:
        client = _client()
        client._client.chat.completions.create = AsyncMock(
            return_value=_make_text_response('{"ok": true}')
        )

        result = await client.simple_completion(system="sys", user_message="hi")

        assert result == '{"ok": true}'
        kwargs = client._client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}

    @pytest.mark.asyncio
    async def test_json_mode_off(self) -> None:
        client = _client()
        client._client.chat.completions.create = AsyncMock(return_value=_make_text_response("plain"))

        await client.simple_completion(system="sys", user_message="hi", json_mode=False)

        assert "response_format" not in client._client.chat.completions.create.await_args.kwargs

    @pytest.mark.asyncio
    async def test_vision_passes_content_parts(self) -> None:
        client = _client()
        client._client.chat.completions.create = AsyncMock(return_value=_make_text_response("{}"))
        parts = [{"type": "text", "text": "look"}]

        await client.vision_completion(system="sys", content=parts)

        messages = client._client.chat.completions.create.await_args.kwargs["messages"]
        assert messages[1]["content"] == parts

    @pytest.mark.asyncio
    async def test_empty_content_becomes_empty_string(self) -> None:
        client = _client()
        client._client.chat.completions.create = AsyncMock(return_value=_make_text_response(None))
        assert await client.simple_completion(system="s", user_message="u") == ""


class TestGenerateImage:
    @pytest.mark.asyncio
    async def test_returns_url(self) -> None:
        client = _client()
        client._client.images.generate = AsyncMock(
            return_value=_make_image_response(url="https://img.test/a.png")
        )

        assert await client.generate_image(prompt="a cat", size="1024x1024") == "https://img.test/a.png"
        kwargs = client._client.images.generate.await_args.kwargs
        assert kwargs["model"] == "image-test"
        assert kwargs["size"] == "1024x1024"

    @pytest.mark.asyncio
    async def test_base64_becomes_data_uri(self) -> None:
        client = _client()
        client._client.images.generate = AsyncMock(return_value=_make_image_response(b64_json="QUJD"))
        assert await client.generate_image(prompt="a cat") == "data:image/png;base64,QUJD"

    @pytest.mark.asyncio
    async def test_empty_image_response_raises(self) -> None:
        client = _client()
        client._client.images.generate = AsyncMock(return_value=_make_image_response())
        with pytest.raises(ValueError, match="neither a URL"):
            await client.generate_image(prompt="a cat")


class TestRetry:
    @pytest.mark.asyncio
    async def test_connection_error_is_retried(self, monkeypatch: pytest.MonkeyPatch) -> None:
        sleep = AsyncMock()
        monkeypatch.setattr(llm_client.asyncio, "sleep", sleep)
        client = _client()
        error = APIConnectionError(request=httpx.Request("POST", "https://api.test"))
        client._client.chat.completions.create = AsyncMock(
            side_effect=[error, _make_text_response("ok")]
        )

        assert await client.simple_completion(system="s", user_message="u") == "ok"
        assert client._client.chat.completions.create.await_count == 2
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(llm_client.asyncio, "sleep", AsyncMock())
        client = _client()
        error = APIConnectionError(request=httpx.Request("POST", "https://api.test"))
        client._client.chat.completions.create = AsyncMock(side_effect=error)

        with pytest.raises(APIConnectionError):
            await client.simple_completion(system="s", user_message="u")
        assert client._client.chat.completions.create.await_count == llm_client._MAX_RETRIES


class TestDryRunClient:
    @pytest.mark.asyncio
    async def test_phase_detection(self) -> None:
        client = DryRunClient()
        analysis = json.loads(await client.vision_completion(system=ANALYSIS_SYSTEM_PROMPT, content=[]))
        research = json.loads(await client.simple_completion(system=RESEARCH_SYSTEM_PROMPT, user_message="{}"))

        assert analysis["industry"] == "Specialty coffee"
        assert research["market_content"]["value_proposition"] == "Fresh Roast Co."

    @pytest.mark.asyncio
    async def test_site_embeds_every_reference(self) -> None:
        client = DryRunClient()
        message = json.dumps({
            "analysis": {},
            "research": {"market_content": {"value_proposition": "Shop"}},
            "asset_references": ["https://a.test/1.png", "data:image/png;base64,XYZ"],
        })

        data = json.loads(await client.simple_completion(system=SITE_CODE_SYSTEM_PROMPT, user_message=message))

        code = data["pages"][0]["code"]
        assert "<h1>Shop</h1>" in code
        assert 'src="https://a.test/1.png"' in code
        assert 'src="data:image/png;base64,XYZ"' in code

    @pytest.mark.asyncio
    async def test_image_placeholder(self) -> None:
        assert await DryRunClient().generate_image(prompt="anything") == DRY_RUN_IMAGE_URL
