"""Generation service contract and the pipeline's error taxonomy."""

from __future__ import annotations

import json
import re
from typing import Any, Protocol

from forge.schemas.analysis import AnalysisResult
from forge.schemas.research import ResearchResult
from forge.schemas.site import AssetKind, WebPage


class ForgeError(Exception):
    """Base class for pipeline failures."""


class UploadConversionError(ForgeError):
    """An uploaded file could not be read or encoded."""


class AnalysisError(ForgeError):
    """Image analysis failed (bad input or provider failure)."""


class ResearchError(ForgeError):
    """Market research failed."""


class GenerationError(ForgeError):
    """A single asset image could not be generated."""


class CodeGenError(ForgeError):
    """Site source generation failed."""


class GenerationServices(Protocol):
    """The four external operations the sequencer drives, one per phase."""

    async def analyze(self, images: list[str]) -> AnalysisResult:
        """Classify base64-encoded design mockups. Raises AnalysisError."""
        ...

    async def research(self, analysis: AnalysisResult) -> ResearchResult:
        """Gather market intelligence for the analysed design. Raises ResearchError."""
        ...

    async def generate_image(self, prompt: str, kind: AssetKind) -> str:
        """Return a URL or data URI for a new image. Raises GenerationError."""
        ...

    async def generate_site_code(
        self,
        analysis: AnalysisResult,
        research: ResearchResult,
        asset_references: list[str],
    ) -> list[WebPage]:
        """Return the site's pages, embedding the given references. Raises CodeGenError."""
        ...


def extract_json(text: str) -> Any:
    """Extract a JSON value from text that may contain markdown fences."""
    text = text.strip()

    # 1. Direct parse (clean JSON response)
    if text.startswith(("{", "[")):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            # Might have trailing text; try raw_decode
            try:
                obj, _ = json.JSONDecoder().raw_decode(text)
                return obj
            except json.JSONDecodeError:
                pass

    # 2. ```json ... ``` or ``` ... ``` fenced blocks
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if match:
        return json.loads(match.group(1).strip())

    # 3. First { and parse an object starting there
    try:
        start = text.index("{")
        obj, _ = json.JSONDecoder().raw_decode(text, idx=start)
        return obj
    except (ValueError, json.JSONDecodeError):
        pass

    raise ValueError(
        f"Could not extract JSON from model response (length={len(text)}). "
        f"First 300 chars: {text[:300]!r}"
    )
