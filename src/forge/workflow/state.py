"""Workflow state transitions.

Each function takes the current WorkflowState and returns a new one; none
mutates its input. Only the PhaseSequencer calls the step-changing ones.
"""

from __future__ import annotations

from forge.schemas.analysis import AnalysisResult
from forge.schemas.research import ResearchOverrides, ResearchResult
from forge.schemas.site import GeneratedAsset, GeneratedSite, Recipe
from forge.schemas.workflow import Gallery, LogEntry, LogLevel, WorkflowState, WorkflowStep


def initial_state(gallery: Gallery | None = None, recipe: Recipe = Recipe.DEFAULT) -> WorkflowState:
    """State at session start: everything default except the restored gallery."""
    return WorkflowState(gallery=gallery or Gallery(), selected_recipe=recipe)


def append_log(state: WorkflowState, message: str, level: LogLevel = "info") -> WorkflowState:
    entry = LogEntry(level=level, message=message)
    return state.model_copy(update={"logs": [*state.logs, entry]})


def begin_upload(state: WorkflowState) -> WorkflowState:
    """Discard the previous run's results and start processing a new upload."""
    return state.model_copy(update={
        "step": WorkflowStep.UPLOAD,
        "uploaded_images": [],
        "analysis": None,
        "research": None,
        "research_overrides": None,
        "generated_assets": [],
        "site": None,
        "previous_site": state.site or state.previous_site,
        "is_processing": True,
        "error": None,
        "logs": [],
    })


def uploads_accepted(state: WorkflowState, images: list[str]) -> WorkflowState:
    return state.model_copy(update={"uploaded_images": list(images)})


def upload_failed(state: WorkflowState, message: str) -> WorkflowState:
    return state.model_copy(update={
        "step": WorkflowStep.UPLOAD,
        "uploaded_images": [],
        "is_processing": False,
        "error": message,
    })


def enter_phase(state: WorkflowState, step: WorkflowStep) -> WorkflowState:
    """Advance to a processing step (ANALYSIS, RESEARCH, GENERATION or CODING)."""
    return state.model_copy(update={"step": step, "is_processing": True, "error": None})


def analysis_completed(state: WorkflowState, analysis: AnalysisResult) -> WorkflowState:
    return state.model_copy(update={"analysis": analysis})


def research_completed(state: WorkflowState, research: ResearchResult) -> WorkflowState:
    """Store research and pause for user review."""
    return state.model_copy(update={
        "research": research,
        "step": WorkflowStep.EDITOR,
        "is_processing": False,
    })


def refinement_confirmed(state: WorkflowState, overrides: ResearchOverrides) -> WorkflowState:
    return state.model_copy(update={
        "research_overrides": overrides,
        "step": WorkflowStep.GENERATION,
        "is_processing": True,
        "error": None,
    })


def assets_completed(state: WorkflowState, assets: list[GeneratedAsset]) -> WorkflowState:
    return state.model_copy(update={"generated_assets": list(assets)})


def site_completed(state: WorkflowState, site: GeneratedSite) -> WorkflowState:
    """Make ``site`` active, prepend it to the gallery and finish the run."""
    return state.model_copy(update={
        "site": site,
        "previous_site": state.site or state.previous_site,
        "gallery": state.gallery.add(site),
        "step": WorkflowStep.PREVIEW,
        "is_processing": False,
    })


def run_failed(state: WorkflowState, message: str) -> WorkflowState:
    """Record a fatal phase failure; committed results stay in place."""
    return state.model_copy(update={"is_processing": False, "error": message})


def remixed(state: WorkflowState, site: GeneratedSite) -> WorkflowState:
    """Re-open ``site``; run data from any earlier run is dropped."""
    return state.model_copy(update={
        "site": site,
        "step": WorkflowStep.PREVIEW,
        "uploaded_images": [],
        "analysis": site.analysis,
        "research": None,
        "research_overrides": None,
        "generated_assets": list(site.assets),
        "is_processing": False,
        "error": None,
    })


def reset_state(state: WorkflowState) -> WorkflowState:
    """Back to the initial state, keeping the gallery and the chosen recipe."""
    return initial_state(state.gallery, state.selected_recipe)


def recipe_selected(state: WorkflowState, recipe: Recipe) -> WorkflowState:
    return state.model_copy(update={"selected_recipe": recipe})


def replace_active_site(state: WorkflowState, site: GeneratedSite) -> WorkflowState:
    """Swap in an updated version of the active site and mirror it into the gallery."""
    return state.model_copy(update={
        "site": site,
        "gallery": state.gallery.replace(site),
    })
