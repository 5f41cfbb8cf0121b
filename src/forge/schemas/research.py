"""Pydantic models for the market-research phase and its user overrides."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class DesignTokens(BaseModel):
    """Design system recommended by the research phase."""

    primary_color: str = ""
    font_style: str = ""
    border_radius: str = ""


class Source(BaseModel):
    """A citation backing the research."""

    title: str
    uri: str


class MarketContent(BaseModel):
    """Marketing copy drafted for the generated site."""

    about_us: str = ""
    services: list[str] = []
    value_proposition: str = ""


class PaymentConfig(BaseModel):
    """Checkout settings embedded in the generated store."""

    method: Literal["upi", "qr"] = "upi"
    upi_id: str | None = None
    qr_image: str | None = None  # base64


class ProductItem(BaseModel):
    """One entry in the product catalog."""

    id: str
    name: str
    price: str = ""
    description: str | None = None
    image: str | None = None  # user-supplied URL or base64; skips generation


class ResearchResult(BaseModel):
    """Full output from the research phase."""

    trends: list[str] = []
    competitors: list[str] = []
    keywords: list[str] = []
    recommended_design_system: DesignTokens = DesignTokens()
    sources: list[Source] = []
    market_content: MarketContent = MarketContent()
    payment_config: PaymentConfig | None = None
    products: list[ProductItem] | None = None


# Fields that may be cleared by an explicit ``None`` in an override.
_CLEARABLE = frozenset({"payment_config", "products"})


class ResearchOverrides(BaseModel):
    """Sparse, typed patch applied over a ResearchResult before generation.

    Only the fields declared here can replace fields of the base result;
    anything else in the input is ignored. The merge is shallow: a provided
    ``market_content`` replaces the whole base ``market_content``.
    """

    model_config = ConfigDict(extra="ignore")

    trends: list[str] | None = None
    competitors: list[str] | None = None
    keywords: list[str] | None = None
    recommended_design_system: DesignTokens | None = None
    sources: list[Source] | None = None
    market_content: MarketContent | None = None
    payment_config: PaymentConfig | None = None
    products: list[ProductItem] | None = None

    def provided_fields(self) -> set[str]:
        """Names of the fields this patch will replace."""
        return {
            name
            for name in self.model_fields_set
            if getattr(self, name) is not None or name in _CLEARABLE
        }

    def apply_to(self, base: ResearchResult) -> ResearchResult:
        """Return a new ResearchResult with the provided fields replaced."""
        merged = base.model_dump()
        for name in self.provided_fields():
            value = getattr(self, name)
            if isinstance(value, BaseModel):
                value = value.model_dump()
            elif isinstance(value, list):
                value = [v.model_dump() if isinstance(v, BaseModel) else v for v in value]
            merged[name] = value
        return ResearchResult.model_validate(merged)
