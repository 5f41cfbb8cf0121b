"""Configuration schema for forge-config.yml."""

from pydantic import BaseModel, Field, field_validator

from forge.schemas.site import Recipe
from forge.schemas.workflow import GALLERY_LIMIT

# Stand-in image used when an asset fails to generate.
DEFAULT_FALLBACK_ASSET_URL = (
    "https://images.unsplash.com/photo-1618005182384-a83a8bd57fbe"
    "?q=80&w=2564&auto=format&fit=crop"
)


class ForgeConfig(BaseModel):
    """Top-level configuration loaded from forge-config.yml.

    Every field has a default, so an empty file (or no file at all) is valid.
    """

    # Gallery persistence
    gallery_path: str = "~/.forge/gallery.json"
    gallery_limit: int = Field(default=GALLERY_LIMIT, ge=1)

    # Pipeline behaviour
    fallback_asset_url: str = DEFAULT_FALLBACK_ASSET_URL
    default_site_name: str = "AI Generated Store"
    recipe: Recipe = Recipe.DEFAULT

    # Models
    text_model: str = "gpt-4o"
    image_model: str = "gpt-image-1"

    # Output
    output_directory: str = "./output"

    @field_validator("fallback_asset_url", "default_site_name")
    @classmethod
    def check_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v
