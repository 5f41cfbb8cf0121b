"""Asset hot-swap: replace a generated image everywhere the site embeds it."""

from __future__ import annotations

from forge.schemas.workflow import WorkflowState
from forge.workflow.state import replace_active_site


def hot_swap_asset(state: WorkflowState, asset_id: str, new_reference: str) -> WorkflowState:
    """Point asset ``asset_id`` at ``new_reference`` in the active site.

    Every literal occurrence of the asset's current reference in every page is
    replaced, the asset entry is updated to match, and the change is mirrored
    into the gallery entry with the same site id. An unknown asset id (or no
    active site) returns ``state`` unchanged.

    The substitution is purely textual: if another asset's reference contains
    this one as a substring, that occurrence is rewritten too. The common case
    is slots that failed to generate: they all share the configured fallback
    URL, so swapping one of them rewrites every fallback image in the pages
    while the other fallback assets keep the old reference in their entries.
    """
    if not new_reference:
        raise ValueError("new_reference must not be empty")
    site = state.site
    if site is None:
        return state
    asset = site.find_asset(asset_id)
    if asset is None or asset.reference == new_reference:
        return state

    old_reference = asset.reference
    pages = [
        page.model_copy(update={"code": page.code.replace(old_reference, new_reference)})
        for page in site.pages
    ]
    assets = [
        a.model_copy(update={"reference": new_reference}) if a.id == asset_id else a
        for a in site.assets
    ]
    generated_assets = [
        a.model_copy(update={"reference": new_reference}) if a.id == asset_id else a
        for a in state.generated_assets
    ]

    updated = site.model_copy(update={"pages": pages, "assets": assets})
    state = replace_active_site(state, updated)
    return state.model_copy(update={"generated_assets": generated_assets})
