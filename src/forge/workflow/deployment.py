"""Attach a finished publish/export result to the active site."""

from __future__ import annotations

from forge.schemas.site import DeploymentState
from forge.schemas.workflow import WorkflowState
from forge.workflow.state import replace_active_site


def record_deployment(state: WorkflowState, deployment: DeploymentState) -> WorkflowState:
    """Store ``deployment`` on the active site and its gallery entry.

    Without an active site, returns ``state`` unchanged.
    """
    if state.site is None:
        return state
    return replace_active_site(state, state.site.model_copy(update={"deployment": deployment}))
