"""Tests for exporting a generated site to disk."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from forge.output.site_writer import _safe_filename, write_site
from forge.schemas.site import GeneratedSite, WebPage

from conftest import make_site


class TestWriteSite:
    def test_writes_pages_and_record(self, tmp_path: Path) -> None:
        site = make_site()
        paths = write_site(site, tmp_path / "out")

        assert [p.name for p in paths] == ["index.html", "about.html", "site.json"]
        assert (tmp_path / "out" / "index.html").read_text() == site.pages[0].code
        record = json.loads((tmp_path / "out" / "site.json").read_text())
        assert record["id"] == "site-1"
        assert len(record["assets"]) == 2

    def test_record_loads_back(self, tmp_path: Path) -> None:
        site = make_site()
        write_site(site, tmp_path)
        assert GeneratedSite.model_validate_json((tmp_path / "site.json").read_text()) == site

    def test_nested_filename(self, tmp_path: Path) -> None:
        site = GeneratedSite(name="S", pages=[WebPage(name="Post", filename="blog/post.html", code="x")])
        write_site(site, tmp_path)
        assert (tmp_path / "blog" / "post.html").read_text() == "x"


class TestSafeFilename:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("index.html", "index.html"),
            ("../../etc/passwd", "etc/passwd"),
            ("/abs/page.html", "abs/page.html"),
            ("pages\\shop.html", "pages/shop.html"),
        ],
    )
    def test_stays_inside_output(self, raw: str, expected: str) -> None:
        assert _safe_filename(raw) == expected

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError):
            _safe_filename("..")


class TestEncodingAndCollisions:
    def test_non_ascii_written_as_utf8(self, tmp_path: Path) -> None:
        site = GeneratedSite(name="Café", pages=[WebPage(name="Home", filename="index.html", code="<p>Café ₹499</p>")])
        write_site(site, tmp_path)

        assert (tmp_path / "index.html").read_bytes().decode("utf-8") == "<p>Café ₹499</p>"
        assert "Café" in (tmp_path / "site.json").read_bytes().decode("utf-8")

    def test_page_cannot_overwrite_record(self, tmp_path: Path) -> None:
        site = GeneratedSite(name="S", pages=[WebPage(name="Data", filename="site.json", code="{}")])
        with pytest.raises(ValueError, match="reserved"):
            write_site(site, tmp_path)
        assert not (tmp_path / "site.json").exists()
