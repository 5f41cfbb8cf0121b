"""Pydantic model for the image-analysis phase output."""

from pydantic import BaseModel, ConfigDict


class AnalysisResult(BaseModel):
    """Classification of the uploaded design mockups.

    Produced exactly once per pipeline run and never modified afterwards.
    """

    model_config = ConfigDict(frozen=True)

    page_type: str = ""
    industry: str = ""
    intent: str = ""
    target_audience: str = ""
    color_palette: list[str] = []
    layout_structure: list[str] = []
    ux_patterns: list[str] = []
    is_ecommerce: bool = False
