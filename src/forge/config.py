"""YAML config loader: reads forge-config.yml into ForgeConfig."""

from pathlib import Path

import yaml

from forge.schemas.config import ForgeConfig
from forge.schemas.research import ResearchOverrides


def load_config(path: str | Path | None = None) -> ForgeConfig:
    """Load and validate a forge config file.

    With no path, returns the defaults. Raises ``FileNotFoundError`` if the
    path doesn't exist and ``pydantic.ValidationError`` if the YAML content
    is invalid.
    """
    if path is None:
        return ForgeConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    # An empty file loads as None; treat it as "all defaults".
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    # Commented-out values load as None; drop them so defaults apply.
    raw = {key: value for key, value in raw.items() if value is not None}

    return ForgeConfig(**raw)


def load_overrides(path: str | Path) -> ResearchOverrides:
    """Load research corrections from a YAML mapping.

    Keys that are not research fields are ignored.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Overrides file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Overrides file must be a YAML mapping, got {type(raw).__name__}")

    return ResearchOverrides.model_validate(raw)
