"""Tests for config loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from forge.config import load_config, load_overrides
from forge.schemas.config import DEFAULT_FALLBACK_ASSET_URL, ForgeConfig
from forge.schemas.site import Recipe


class TestForgeConfig:
    """Test the ForgeConfig Pydantic model directly."""

    def test_defaults(self) -> None:
        cfg = ForgeConfig()
        assert cfg.gallery_limit == 20
        assert cfg.fallback_asset_url == DEFAULT_FALLBACK_ASSET_URL
        assert cfg.default_site_name == "AI Generated Store"
        assert cfg.recipe == Recipe.DEFAULT

    def test_gallery_limit_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ForgeConfig(gallery_limit=0)

    def test_unknown_recipe_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ForgeConfig(recipe="vaporwave")

    def test_blank_site_name_rejected(self) -> None:
        with pytest.raises(ValidationError, match="blank"):
            ForgeConfig(default_site_name="   ")


class TestLoadConfig:
    """Test YAML file loading."""

    def test_no_path_gives_defaults(self) -> None:
        assert load_config(None) == ForgeConfig()

    def test_load_valid_file(self, tmp_config: Path, tmp_path: Path) -> None:
        cfg = load_config(tmp_config)
        assert cfg.gallery_path == str(tmp_path / "gallery.json")
        assert cfg.output_directory == str(tmp_path / "output")

    def test_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yml"
        bad.write_text("just a string")
        with pytest.raises(ValueError, match="YAML mapping"):
            load_config(bad)

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.yml"
        empty.write_text("")
        assert load_config(empty) == ForgeConfig()

    def test_null_values_fall_back_to_defaults(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yml"
        cfg_file.write_text("recipe: glassmorphism\ndefault_site_name:\n")
        cfg = load_config(cfg_file)
        assert cfg.recipe == Recipe.GLASSMORPHISM
        assert cfg.default_site_name == "AI Generated Store"


class TestLoadOverrides:
    def test_load_overrides(self, tmp_path: Path) -> None:
        path = tmp_path / "overrides.yml"
        path.write_text(
            """\
market_content:
  value_proposition: "Better Beans"
products:
  - id: p1
    name: Espresso
    price: "₹599"
    image: "https://cdn.test/espresso.jpg"
not_a_field: 1
"""
        )
        patch = load_overrides(path)
        assert patch.provided_fields() == {"market_content", "products"}
        assert patch.products[0].image == "https://cdn.test/espresso.jpg"

    def test_missing_overrides_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_overrides(tmp_path / "missing.yml")

    def test_overrides_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "overrides.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="YAML mapping"):
            load_overrides(path)
