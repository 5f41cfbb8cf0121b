"""Session-scoped holder of the single live WorkflowState."""

from __future__ import annotations

import logging
from typing import Callable

from forge.schemas.site import Recipe
from forge.schemas.workflow import GALLERY_LIMIT, LogLevel, WorkflowState
from forge.storage.gallery import GalleryStore
from forge.workflow.state import append_log, initial_state

logger = logging.getLogger(__name__)

StateObserver = Callable[[WorkflowState, WorkflowState], None]
"""Called with (previous, current) after every committed transition."""

_LOG_LEVELS = {"info": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR}


class ForgeSession:
    """Owns the WorkflowState for one user session.

    The gallery is restored from ``store`` on construction and saved back
    whenever a commit changes it. Ending a session needs no teardown; use
    ``PhaseSequencer.reset`` to start over within the same session.
    """

    def __init__(
        self,
        store: GalleryStore | None = None,
        *,
        gallery_limit: int = GALLERY_LIMIT,
        recipe: Recipe = Recipe.DEFAULT,
        on_change: StateObserver | None = None,
    ) -> None:
        self.store = store or GalleryStore(None)
        self.on_change = on_change
        self._state = initial_state(self.store.load(gallery_limit), recipe)

    @property
    def state(self) -> WorkflowState:
        """Read-only snapshot of the current state."""
        return self._state

    def commit(self, new_state: WorkflowState) -> WorkflowState:
        """Replace the live state wholesale."""
        previous = self._state
        self._state = new_state
        if new_state.gallery != previous.gallery:
            self.store.save(new_state.gallery)
        if self.on_change is not None:
            self.on_change(previous, new_state)
        return new_state

    def log(self, message: str, level: LogLevel = "info") -> WorkflowState:
        """Append to the run's log trail and mirror the line to ``logging``."""
        logger.log(_LOG_LEVELS[level], message)
        return self.commit(append_log(self._state, message, level))
