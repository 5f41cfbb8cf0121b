"""OpenAI-backed implementation of the four generation services."""

from __future__ import annotations

import json
import logging
from typing import Any

from openai import OpenAIError

from forge.services.base import (
    AnalysisError,
    CodeGenError,
    GenerationError,
    ResearchError,
    extract_json,
)
from forge.services.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    RESEARCH_SYSTEM_PROMPT,
    SITE_CODE_SYSTEM_PROMPT,
)
from forge.schemas.analysis import AnalysisResult
from forge.schemas.research import ResearchResult
from forge.schemas.site import AssetKind, WebPage
from forge.shared.llm_client import LLMClient

logger = logging.getLogger(__name__)

# Landscape for page-wide visuals, square for catalog and icon art.
_IMAGE_SIZES: dict[AssetKind, str] = {
    AssetKind.HERO: "1536x1024",
    AssetKind.FEATURE: "1536x1024",
    AssetKind.ABSTRACT: "1536x1024",
    AssetKind.CAR: "1536x1024",
    AssetKind.PRODUCT: "1024x1024",
    AssetKind.ICON: "1024x1024",
}

# Errors a provider call or its output parsing can raise.
_CALL_ERRORS = (OpenAIError, ValueError, KeyError, TypeError)


class LLMServices:
    """Generation services driven by an ``LLMClient`` (or ``DryRunClient``).

    Every provider failure or unparsable response is re-raised as the
    phase's own error type so the sequencer can classify it.
    """

    def __init__(self, client: LLMClient) -> None:
        self.client = client

    async def analyze(self, images: list[str]) -> AnalysisResult:
        if not images:
            raise AnalysisError("No images to analyze")

        content: list[dict[str, Any]] = [{
            "type": "text",
            "text": f"Analyze these {len(images)} design mockup(s).",
        }]
        for image in images:
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:image/png;base64,{image}"},
            })

        try:
            raw = await self.client.vision_completion(
                system=ANALYSIS_SYSTEM_PROMPT, content=content,
            )
            logger.debug("Analysis raw output:\n%s", raw[:500])
            return AnalysisResult.model_validate(extract_json(raw))
        except _CALL_ERRORS as exc:
            raise AnalysisError(f"Image analysis failed: {exc}") from exc

    async def research(self, analysis: AnalysisResult) -> ResearchResult:
        try:
            raw = await self.client.simple_completion(
                system=RESEARCH_SYSTEM_PROMPT,
                user_message=analysis.model_dump_json(),
            )
            logger.debug("Research raw output:\n%s", raw[:500])
            return ResearchResult.model_validate(extract_json(raw))
        except _CALL_ERRORS as exc:
            raise ResearchError(f"Market research failed: {exc}") from exc

    async def generate_image(self, prompt: str, kind: AssetKind) -> str:
        try:
            return await self.client.generate_image(
                prompt=prompt, size=_IMAGE_SIZES.get(kind, "1024x1024"),
            )
        except _CALL_ERRORS as exc:
            raise GenerationError(f"Image generation failed for {kind.value}: {exc}") from exc

    async def generate_site_code(
        self,
        analysis: AnalysisResult,
        research: ResearchResult,
        asset_references: list[str],
    ) -> list[WebPage]:
        user_message = json.dumps({
            "analysis": analysis.model_dump(mode="json"),
            "research": research.model_dump(mode="json"),
            "asset_references": asset_references,
        })
        try:
            raw = await self.client.simple_completion(
                system=SITE_CODE_SYSTEM_PROMPT, user_message=user_message,
            )
            logger.debug("Site code raw output (%d chars)", len(raw))
            data = extract_json(raw)
            items = data["pages"] if isinstance(data, dict) else data
            pages = [WebPage.model_validate(item) for item in items]
        except _CALL_ERRORS as exc:
            raise CodeGenError(f"Site code generation failed: {exc}") from exc

        if not pages:
            raise CodeGenError("Site code generation returned no pages")
        return pages
