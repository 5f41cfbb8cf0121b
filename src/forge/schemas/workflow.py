"""Workflow state, log entries and the bounded gallery of completed sites."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from forge.schemas.analysis import AnalysisResult
from forge.schemas.research import ResearchOverrides, ResearchResult
from forge.schemas.site import GeneratedAsset, GeneratedSite, Recipe

GALLERY_LIMIT = 20


class WorkflowStep(str, Enum):
    UPLOAD = "UPLOAD"
    RECIPE = "RECIPE"
    ANALYSIS = "ANALYSIS"
    RESEARCH = "RESEARCH"
    EDITOR = "EDITOR"
    GENERATION = "GENERATION"
    CODING = "CODING"
    PREVIEW = "PREVIEW"


LogLevel = Literal["info", "warn", "error"]


class LogEntry(BaseModel):
    """One line of the run's diagnostic trail."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=datetime.now)
    level: LogLevel = "info"
    message: str

    def __str__(self) -> str:
        prefix = {"info": "", "warn": "[WARN] ", "error": "[ERROR] "}[self.level]
        return f"[{self.timestamp:%H:%M:%S}] {prefix}{self.message}"


class Gallery(BaseModel):
    """Most-recent-first sequence of completed sites, capped at ``limit``.

    Never mutated in place: ``add`` and ``replace`` return a new Gallery.
    """

    model_config = ConfigDict(frozen=True)

    sites: list[GeneratedSite] = []
    limit: int = Field(default=GALLERY_LIMIT, ge=1)

    def get(self, site_id: str) -> GeneratedSite | None:
        for site in self.sites:
            if site.id == site_id:
                return site
        return None

    def add(self, site: GeneratedSite) -> "Gallery":
        """Prepend ``site``, evicting the oldest entries beyond the limit."""
        return self.model_copy(update={"sites": [site, *self.sites][: self.limit]})

    def replace(self, site: GeneratedSite) -> "Gallery":
        """Swap in ``site`` for the entry with the same id (no-op if absent)."""
        if self.get(site.id) is None:
            return self
        return self.model_copy(
            update={"sites": [site if s.id == site.id else s for s in self.sites]}
        )


class WorkflowState(BaseModel):
    """Everything the session knows about the current run.

    Frozen: every transition builds a new state from the previous one.
    """

    model_config = ConfigDict(frozen=True)

    step: WorkflowStep = WorkflowStep.UPLOAD
    uploaded_images: list[str] = []  # base64
    analysis: AnalysisResult | None = None
    research: ResearchResult | None = None
    research_overrides: ResearchOverrides | None = None
    generated_assets: list[GeneratedAsset] = []
    site: GeneratedSite | None = None
    previous_site: GeneratedSite | None = None
    is_processing: bool = False
    error: str | None = None
    logs: list[LogEntry] = []
    gallery: Gallery = Gallery()
    selected_recipe: Recipe = Recipe.DEFAULT
