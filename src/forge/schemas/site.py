"""Pydantic models for generated assets, pages, sites and deployments."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from forge.schemas.analysis import AnalysisResult


def new_id() -> str:
    """Short random identifier for assets and sites."""
    return uuid.uuid4().hex[:9]


class AssetKind(str, Enum):
    HERO = "hero"
    FEATURE = "feature"
    PRODUCT = "product"
    ABSTRACT = "abstract"
    ICON = "icon"
    CAR = "car"


class Recipe(str, Enum):
    """Visual preset selected by the user; opaque to the pipeline."""

    DEFAULT = "default"
    NEO_BRUTALISM = "neo-brutalism"
    GLASSMORPHISM = "glassmorphism"
    SAAS_MINIMAL = "saas-minimal"
    CYBERPUNK_DARK = "cyberpunk-dark"


class GeneratedAsset(BaseModel):
    """An image embedded in a generated site.

    Pages embed ``reference`` (a URL or ``data:`` URI), never ``id``.
    """

    id: str = Field(default_factory=new_id)
    kind: AssetKind
    reference: str = Field(min_length=1)
    prompt: str = ""


class WebPage(BaseModel):
    """One generated source file."""

    name: str
    filename: str
    code: str


class DeploymentState(BaseModel):
    """Outcome of a publish/export to a deployment provider."""

    status: Literal["idle", "authorizing", "uploading", "ready", "error"] = "idle"
    url: str | None = None
    site_id: str | None = None
    repo_url: str | None = None
    repo_name: str | None = None
    pr_url: str | None = None
    platform: Literal["netlify", "github"] | None = None
    timestamp: datetime | None = None


class GeneratedSite(BaseModel):
    """A completed pipeline result, as shown in preview and stored in the gallery."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str
    pages: list[WebPage]
    active_page_index: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)
    assets: list[GeneratedAsset] = []
    deployment: DeploymentState | None = None
    analysis: AnalysisResult | None = None
    recipe: Recipe | None = None

    @model_validator(mode="after")
    def check_active_page_index(self) -> "GeneratedSite":
        if self.pages and not 0 <= self.active_page_index < len(self.pages):
            raise ValueError(
                f"active_page_index {self.active_page_index} out of range "
                f"for {len(self.pages)} page(s)"
            )
        if not self.pages and self.active_page_index != 0:
            raise ValueError("active_page_index must be 0 for a site without pages")
        return self

    @property
    def active_page(self) -> WebPage | None:
        return self.pages[self.active_page_index] if self.pages else None

    def find_asset(self, asset_id: str) -> GeneratedAsset | None:
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None
