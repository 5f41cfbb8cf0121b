"""Durable record of the gallery as one JSON document on disk.

Read and write failures never propagate: the store logs a warning and keeps
the gallery in memory for the rest of the session instead.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from forge.schemas.site import GeneratedSite
from forge.schemas.workflow import GALLERY_LIMIT, Gallery

logger = logging.getLogger(__name__)

_SITES = TypeAdapter(list[GeneratedSite])


class GalleryStore:
    """Loads the gallery at session start and saves it whenever it changes."""

    def __init__(self, path: str | Path | None) -> None:
        self.path = Path(path).expanduser() if path is not None else None
        self._memory: str | None = None

    @property
    def in_memory(self) -> bool:
        """True once the store has fallen back to session memory."""
        return self.path is None or self._memory is not None

    def load(self, limit: int = GALLERY_LIMIT) -> Gallery:
        raw = self._read()
        if raw is None:
            return Gallery(limit=limit)
        try:
            sites = _SITES.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Stored gallery is unreadable, starting empty: %s", exc)
            return Gallery(limit=limit)
        return Gallery(sites=sites[:limit], limit=limit)

    def save(self, gallery: Gallery) -> None:
        data = _SITES.dump_json(gallery.sites, indent=2).decode()
        if self.path is None or self._memory is not None:
            self._memory = data
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(data, encoding="utf-8")
        except (OSError, UnicodeError) as exc:
            logger.warning(
                "Gallery storage unavailable (%s), falling back to session memory", exc,
            )
            self._memory = data

    def _read(self) -> str | None:
        if self._memory is not None:
            return self._memory
        if self.path is None or not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeError) as exc:
            logger.warning(
                "Gallery storage unavailable (%s), falling back to session memory", exc,
            )
            self._memory = "[]"
            return None
