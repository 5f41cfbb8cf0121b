"""Export a generated site to disk."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from forge.schemas.site import GeneratedSite

RECORD_FILENAME = "site.json"


def _safe_filename(filename: str) -> str:
    """Keep page filenames inside the output directory."""
    parts = [p for p in PurePosixPath(filename.replace("\\", "/")).parts if p not in ("", ".", "..", "/")]
    if not parts:
        raise ValueError(f"Invalid page filename: {filename!r}")
    return str(PurePosixPath(*parts))


def write_site(site: GeneratedSite, out_dir: str | Path) -> list[Path]:
    """Write every page to its filename plus ``site.json`` with the full record.

    Returns the written paths, pages first. Raises ``ValueError`` when a page
    filename is unusable or would overwrite the record.
    """
    targets = [_safe_filename(page.filename) for page in site.pages]
    if RECORD_FILENAME in targets:
        raise ValueError(f"Page filename {RECORD_FILENAME!r} is reserved for the site record")

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for page, target in zip(site.pages, targets):
        path = out_dir / target
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(page.code, encoding="utf-8")
        written.append(path)

    record = out_dir / RECORD_FILENAME
    record.write_text(site.model_dump_json(indent=2), encoding="utf-8")
    written.append(record)
    return written
