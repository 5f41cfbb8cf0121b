"""Async OpenAI API wrapper used by the generation services."""

from __future__ import annotations

import asyncio
import json
import logging
import random
import re
from typing import Any, Awaitable, Callable

from openai import AsyncOpenAI, APIConnectionError, APITimeoutError, RateLimitError

logger = logging.getLogger(__name__)

TEXT_MODEL = "gpt-4o"
IMAGE_MODEL = "gpt-image-1"
MAX_TOKENS = 16_384

# Retry settings for rate-limit (429) and connection errors
_MAX_RETRIES = 6
_BASE_DELAY = 5  # seconds, minimum floor for exponential backoff


def _parse_retry_after(exc: RateLimitError) -> float | None:
    """Extract the suggested retry delay from an OpenAI rate limit error.

    Checks the ``Retry-After`` header first, then falls back to parsing
    the "Please try again in Xs / Xms" substring from the error message.
    """
    try:
        headers = exc.response.headers  # type: ignore[union-attr]
        if retry_after := headers.get("retry-after"):
            return float(retry_after)
    except (AttributeError, TypeError, ValueError):
        pass

    m = re.search(r"try again in (\d+(?:\.\d+)?)\s*(ms|s)\b", str(exc), re.IGNORECASE)
    if m:
        value = float(m.group(1))
        return value / 1000 if m.group(2).lower() == "ms" else value

    return None


class LLMClient:
    """Thin async wrapper around the OpenAI SDK.

    Provides three calls:
    - ``simple_completion``: system + user text, JSON mode by default.
    - ``vision_completion``: multipart user content (text + images).
    - ``generate_image``: one image, returned as a URL or data URI.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        text_model: str = TEXT_MODEL,
        image_model: str = IMAGE_MODEL,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key)
        self.text_model = text_model
        self.image_model = image_model

    async def _call_with_retry(self, call: Callable[[], Awaitable[Any]]) -> Any:
        """Await ``call()`` with exponential backoff on 429 and connection errors.

        Waits at least as long as OpenAI's suggested retry-after time and adds
        ±25% jitter. Fails immediately when the request itself exceeds the
        token limit.
        """
        for attempt in range(_MAX_RETRIES):
            try:
                return await call()
            except RateLimitError as exc:
                msg = str(exc).lower()
                if "request too large" in msg or "context_length_exceeded" in msg:
                    logger.error("Request exceeds token limit (not retryable): %s", exc)
                    raise
                if attempt == _MAX_RETRIES - 1:
                    raise

                backoff = _BASE_DELAY * (2 ** attempt)
                suggested = _parse_retry_after(exc)
                base_delay = max(suggested or 0.0, backoff)
                jitter = random.uniform(-0.25 * base_delay, 0.25 * base_delay)
                delay = max(1.0, base_delay + jitter)

                logger.warning(
                    "Rate limited (429), retrying in %.1fs (attempt %d/%d): %s",
                    delay, attempt + 1, _MAX_RETRIES, exc,
                )
                await asyncio.sleep(delay)
            except (APIConnectionError, APITimeoutError) as exc:
                if attempt == _MAX_RETRIES - 1:
                    raise
                backoff = _BASE_DELAY * (2 ** min(attempt, 3))
                jitter = random.uniform(-0.25 * backoff, 0.25 * backoff)
                delay = max(2.0, backoff + jitter)
                logger.warning(
                    "Connection error, retrying in %.1fs (attempt %d/%d): %s",
                    delay, attempt + 1, _MAX_RETRIES, exc,
                )
                await asyncio.sleep(delay)

    # ------------------------------------------------------------------
    # Completions
    # ------------------------------------------------------------------

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
    ) -> str:
        """Single request/response with no tools."""
        return await self._chat(system, user_message, json_mode=json_mode)

    async def vision_completion(
        self,
        *,
        system: str,
        content: list[dict[str, Any]],
        json_mode: bool = True,
    ) -> str:
        """Single request/response with multipart content (text + images).

        ``content`` is a list of OpenAI content parts, e.g.:
            [{"type": "text", "text": "..."}, {"type": "image_url", "image_url": {...}}]
        """
        return await self._chat(system, content, json_mode=json_mode)

    async def _chat(self, system: str, content: Any, *, json_mode: bool) -> str:
        kwargs: dict[str, Any] = {
            "model": self.text_model,
            "max_tokens": MAX_TOKENS,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": content},
            ],
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self._call_with_retry(
            lambda: self._client.chat.completions.create(**kwargs)
        )
        return response.choices[0].message.content or ""

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def generate_image(self, *, prompt: str, size: str = "1536x1024") -> str:
        """Generate one image and return its URL, or a PNG data URI."""
        response = await self._call_with_retry(
            lambda: self._client.images.generate(
                model=self.image_model, prompt=prompt, size=size, n=1,
            )
        )
        image = response.data[0]
        if getattr(image, "url", None):
            return image.url
        if getattr(image, "b64_json", None):
            return f"data:image/png;base64,{image.b64_json}"
        raise ValueError("Image response contained neither a URL nor base64 data")


# ======================================================================
# Dry-run mock client (zero API calls)
# ======================================================================

_DRY_RUN_JSON: dict[str, str] = {
    "analysis": json.dumps({
        "page_type": "landing",
        "industry": "Specialty coffee",
        "intent": "Sell beans online",
        "target_audience": "Home baristas",
        "color_palette": ["#1a1a1a", "#facc15", "#f5f5f4"],
        "layout_structure": ["hero", "product grid", "footer"],
        "ux_patterns": ["sticky header", "card grid"],
        "is_ecommerce": True,
    }),
    "research": json.dumps({
        "trends": ["Single-origin storytelling"],
        "competitors": ["Example Roasters"],
        "keywords": ["fresh roasted coffee"],
        "recommended_design_system": {
            "primary_color": "#facc15", "font_style": "geometric sans", "border_radius": "12px",
        },
        "sources": [{"title": "Example Roasters", "uri": "https://example.com"}],
        "market_content": {
            "about_us": "Small-batch roasters.",
            "services": ["Subscriptions", "Wholesale"],
            "value_proposition": "Fresh Roast Co.",
        },
        "products": [{"id": "p1", "name": "House Blend", "price": "₹499"}],
    }),
}

DRY_RUN_IMAGE_URL = "https://placehold.co/1536x1024/png"


class DryRunClient:
    """Drop-in replacement for LLMClient that makes zero API calls.

    Returns canned JSON chosen from the system prompt, and a placeholder
    image URL for every image request.
    """

    text_model = "dry-run"
    image_model = "dry-run"

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
    ) -> str:
        phase = self._detect_phase(system)
        if phase == "code":
            return self._dry_run_site(user_message)
        return _DRY_RUN_JSON[phase]

    async def vision_completion(
        self,
        *,
        system: str,
        content: list[dict[str, Any]],
        json_mode: bool = True,
    ) -> str:
        return _DRY_RUN_JSON.get(self._detect_phase(system), "{}")

    async def generate_image(self, *, prompt: str, size: str = "1536x1024") -> str:
        logger.info("[dry-run] Image: %s", prompt[:80])
        return DRY_RUN_IMAGE_URL

    @staticmethod
    def _detect_phase(system: str) -> str:
        """Guess which phase is calling from its system prompt."""
        # The research prompt mentions the analyst, so check it first.
        if "Market Researcher" in system:
            return "research"
        if "Design Analyst" in system:
            return "analysis"
        return "code"

    @staticmethod
    def _dry_run_site(user_message: str) -> str:
        """Build a one-page site that embeds every asset reference it was given."""
        payload = json.loads(user_message)
        title = payload["research"]["market_content"]["value_proposition"] or "Dry Run"
        images = "\n".join(
            f'    <img src="{ref}" alt="asset {i}">'
            for i, ref in enumerate(payload.get("asset_references", []))
        )
        code = (
            "<!doctype html>\n<html>\n  <body>\n"
            f"    <h1>{title}</h1>\n{images}\n  </body>\n</html>\n"
        )
        return json.dumps({"pages": [{"name": "Home", "filename": "index.html", "code": code}]})
