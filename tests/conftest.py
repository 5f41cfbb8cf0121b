"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from forge.schemas.analysis import AnalysisResult
from forge.schemas.config import ForgeConfig
from forge.schemas.research import MarketContent, ProductItem, ResearchResult
from forge.schemas.site import AssetKind, GeneratedAsset, GeneratedSite, WebPage
from forge.storage.gallery import GalleryStore
from forge.workflow.sequencer import PhaseSequencer
from forge.workflow.session import ForgeSession

FALLBACK_URL = "https://fallback.test/placeholder.png"


def make_site(site_id: str = "site-1", *, name: str = "Test Site") -> GeneratedSite:
    """A two-page site embedding two assets."""
    assets = [
        GeneratedAsset(id="hero-1", kind=AssetKind.HERO, reference="https://img.test/hero.png", prompt="hero"),
        GeneratedAsset(id="feat-1", kind=AssetKind.FEATURE, reference="https://img.test/feature.png", prompt="feature"),
    ]
    pages = [
        WebPage(
            name="Home",
            filename="index.html",
            code=(
                '<img src="https://img.test/hero.png">\n'
                '<div style="background:url(https://img.test/feature.png)"></div>\n'
                '<img src="https://img.test/hero.png" class="thumb">'
            ),
        ),
        WebPage(name="About", filename="about.html", code='<img src="https://img.test/hero.png">'),
    ]
    return GeneratedSite(id=site_id, name=name, pages=pages, assets=assets)


@pytest.fixture
def analysis() -> AnalysisResult:
    return AnalysisResult(
        page_type="storefront",
        industry="Coffee",
        intent="Sell beans",
        target_audience="Home baristas",
        color_palette=["#000000"],
        is_ecommerce=True,
    )


@pytest.fixture
def research() -> ResearchResult:
    return ResearchResult(
        trends=["Single origin"],
        competitors=["Rival Roasters"],
        market_content=MarketContent(about_us="We roast.", value_proposition="Bean There"),
        products=[
            ProductItem(id="p1", name="House Blend", price="₹499"),
            ProductItem(id="p2", name="Decaf", price="₹399", image="data:image/png;base64,USERIMG"),
        ],
    )


@pytest.fixture
def services(analysis: AnalysisResult, research: ResearchResult) -> MagicMock:
    """Generation services that succeed and embed every asset reference."""
    svc = MagicMock()
    svc.analyze = AsyncMock(return_value=analysis)
    svc.research = AsyncMock(return_value=research)

    async def generate_image(prompt: str, kind: AssetKind) -> str:
        return f"https://img.test/{kind.value}-{svc.generate_image.await_count}.png"

    async def generate_site_code(analysis, research, asset_references):
        body = "\n".join(f'<img src="{ref}">' for ref in asset_references)
        return [
            WebPage(name="Home", filename="index.html", code=body),
            WebPage(name="Shop", filename="shop.html", code=body),
        ]

    svc.generate_image = AsyncMock(side_effect=generate_image)
    svc.generate_site_code = AsyncMock(side_effect=generate_site_code)
    return svc


@pytest.fixture
def store(tmp_path: Path) -> GalleryStore:
    return GalleryStore(tmp_path / "gallery.json")


@pytest.fixture
def session(store: GalleryStore) -> ForgeSession:
    return ForgeSession(store)


@pytest.fixture
def sequencer(session: ForgeSession, services: MagicMock) -> PhaseSequencer:
    return PhaseSequencer(session, services, ForgeConfig(fallback_asset_url=FALLBACK_URL))


@pytest.fixture
def upload_files(tmp_path: Path) -> list[Path]:
    """Two small fake image files."""
    first = tmp_path / "home.png"
    first.write_bytes(b"\x89PNG-home")
    second = tmp_path / "shop.png"
    second.write_bytes(b"\x89PNG-shop")
    return [first, second]


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        """\
gallery_path: "{gallery}"
output_directory: "{out}"
""".format(gallery=str(tmp_path / "gallery.json"), out=str(tmp_path / "output"))
    )
    return cfg
