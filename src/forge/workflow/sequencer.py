"""Phase Sequencer: drives a run from upload to preview.

Pipeline flow:
    upload → analysis → research → (user review) → assets → site code → preview

Analysis chains straight into research; everything after research waits for
``confirm_refinement``. Each public action returns the session's new state.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from pathlib import Path
from typing import Any, Sequence

from pydantic import BaseModel

from forge.schemas.config import ForgeConfig
from forge.schemas.research import ResearchOverrides, ResearchResult
from forge.schemas.site import (
    AssetKind,
    DeploymentState,
    GeneratedAsset,
    GeneratedSite,
    Recipe,
)
from forge.schemas.workflow import WorkflowState, WorkflowStep
from forge.services.base import GenerationError, GenerationServices, UploadConversionError
from forge.workflow import state as transitions
from forge.workflow.deployment import record_deployment
from forge.workflow.patcher import hot_swap_asset
from forge.workflow.session import ForgeSession

logger = logging.getLogger(__name__)


class AssetSlot(BaseModel):
    """One image the site needs, in generation order."""

    kind: AssetKind
    prompt: str
    existing_reference: str | None = None


def plan_asset_slots(industry: str, research: ResearchResult) -> list[AssetSlot]:
    """Hero, feature, then one slot per catalog product in catalog order."""
    slots = [
        AssetSlot(
            kind=AssetKind.HERO,
            prompt=(
                f"High-end minimalist hero visual for {industry}. "
                f"Theme: {research.market_content.value_proposition}"
            ),
        ),
        AssetSlot(
            kind=AssetKind.FEATURE,
            prompt=f"Abstract high-tech professional background for {industry}",
        ),
    ]
    for product in research.products or []:
        if product.image:
            slots.append(AssetSlot(
                kind=AssetKind.PRODUCT,
                prompt=f"User uploaded product: {product.name}",
                existing_reference=product.image,
            ))
        else:
            slots.append(AssetSlot(
                kind=AssetKind.PRODUCT,
                prompt=f"High-end commercial photography of {product.name}. 8K, Clean background.",
            ))
    return slots


async def encode_upload(file: str | Path) -> str:
    """Read one uploaded file and return it base64-encoded."""
    path = Path(file)
    try:
        data = await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        raise UploadConversionError(f"Could not read {path.name}: {exc.strerror or exc}") from exc
    if not data:
        raise UploadConversionError(f"{path.name} is empty")
    return base64.b64encode(data).decode("ascii")


class PhaseSequencer:
    """Runs the generation phases against a session's WorkflowState.

    At most one ``accept_uploads`` chain may be in flight per session.
    Fatal phase failures end up in ``state.error``; they are not re-raised.
    """

    def __init__(
        self,
        session: ForgeSession,
        services: GenerationServices,
        config: ForgeConfig | None = None,
    ) -> None:
        self.session = session
        self.services = services
        self.config = config or ForgeConfig()

    @property
    def state(self) -> WorkflowState:
        return self.session.state

    # ------------------------------------------------------------------
    # Upload → Analysis → Research
    # ------------------------------------------------------------------

    async def accept_uploads(self, files: Sequence[str | Path]) -> WorkflowState:
        """Encode every file (all or nothing), then run analysis and research."""
        if not files:
            return self.state

        self.session.commit(transitions.begin_upload(self.state))
        self.session.log("Initializing forge pipeline...")

        try:
            images = await asyncio.gather(*(encode_upload(f) for f in files))
        except Exception as exc:
            logger.debug("Upload conversion failed", exc_info=True)
            return self._fail_upload(str(exc) or "Forge sequence failed to initialize.")

        self.session.commit(transitions.uploads_accepted(self.state, images))
        self.session.log(f"Blueprints received: {len(images)} design files.")
        return await self.run_analysis_phase(list(images))

    async def retry_analysis(self) -> WorkflowState:
        """Re-run analysis and research on the uploads already accepted."""
        if not self.state.uploaded_images:
            self.session.log("Nothing to retry: no uploaded designs in this run.", "warn")
            return self.state
        if self.state.is_processing:
            logger.warning("retry_analysis ignored while a phase is running")
            return self.state
        return await self.run_analysis_phase(list(self.state.uploaded_images))

    async def run_analysis_phase(self, images: list[str]) -> WorkflowState:
        self.session.commit(transitions.enter_phase(self.state, WorkflowStep.ANALYSIS))
        self.session.log("Deconstructing visual hierarchy...")
        try:
            analysis = await self.services.analyze(images)
        except Exception as exc:
            return self._fail_run("Analysis", exc)
        self.session.commit(transitions.analysis_completed(self.state, analysis))
        self.session.log(
            f"Design classified: {analysis.page_type or 'page'} for {analysis.industry or 'unknown industry'}."
        )
        return await self._run_research_phase()

    async def _run_research_phase(self) -> WorkflowState:
        self.session.commit(transitions.enter_phase(self.state, WorkflowStep.RESEARCH))
        self.session.log("Mining sector intelligence & trending design patterns...")
        try:
            research = await self.services.research(self.state.analysis)
        except Exception as exc:
            return self._fail_run("Research", exc)
        self.session.commit(transitions.research_completed(self.state, research))
        return self.session.log("Harvest complete. Ready for catalog setup.")

    # ------------------------------------------------------------------
    # Refinement → Assets → Code
    # ------------------------------------------------------------------

    async def confirm_refinement(
        self, overrides: ResearchOverrides | dict[str, Any] | None = None,
    ) -> WorkflowState:
        """Apply the user's corrections to the research and finish the run."""
        if self.state.step is not WorkflowStep.EDITOR or self.state.research is None:
            logger.warning("confirm_refinement ignored: no research awaiting review")
            return self.state

        if overrides is None:
            overrides = ResearchOverrides()
        elif isinstance(overrides, dict):
            overrides = ResearchOverrides.model_validate(overrides)
        merged = overrides.apply_to(self.state.research)

        self.session.commit(transitions.refinement_confirmed(self.state, overrides))
        self.session.log("Refinery settings locked. Casting production assets...")
        return await self._run_asset_phase(merged)

    async def _run_asset_phase(self, research: ResearchResult) -> WorkflowState:
        """Generate every slot in order; a failed slot gets the fallback image.

        Strictly sequential and in slot order, so the log reads in slot order
        and only one image request is in flight at a time.
        """
        analysis = self.state.analysis
        assets: list[GeneratedAsset] = []

        for slot in plan_asset_slots(analysis.industry, research):
            if slot.existing_reference:
                self.session.log(f"Using user-uploaded artifact for {slot.kind.value}...")
                assets.append(GeneratedAsset(
                    kind=slot.kind, reference=slot.existing_reference, prompt=slot.prompt,
                ))
                continue

            self.session.log(f"Forging {slot.kind.value} artifact: {slot.prompt[:30]}...")
            try:
                reference = await self.services.generate_image(slot.prompt, slot.kind)
                if not isinstance(reference, str) or not reference.strip():
                    raise GenerationError(f"no usable image reference returned: {reference!r}")
                asset = GeneratedAsset(kind=slot.kind, reference=reference, prompt=slot.prompt)
            except Exception as exc:
                logger.debug("Image generation failed for %s slot", slot.kind.value, exc_info=True)
                self.session.log(
                    f"Generation for {slot.kind.value} failed ({exc}). Using placeholder.", "warn",
                )
                asset = GeneratedAsset(
                    kind=slot.kind, reference=self.config.fallback_asset_url, prompt=slot.prompt,
                )
            assets.append(asset)

        self.session.commit(transitions.assets_completed(self.state, assets))
        return await self._run_code_phase(research, assets)

    async def _run_code_phase(
        self, research: ResearchResult, assets: list[GeneratedAsset],
    ) -> WorkflowState:
        self.session.commit(transitions.enter_phase(self.state, WorkflowStep.CODING))
        self.session.log("Architecting multi-page source...")
        analysis = self.state.analysis
        try:
            pages = await self.services.generate_site_code(
                analysis, research, [a.reference for a in assets],
            )
        except Exception as exc:
            return self._fail_run("Code generation", exc)

        site = GeneratedSite(
            name=research.market_content.value_proposition or self.config.default_site_name,
            pages=pages,
            assets=assets,
            analysis=analysis,
            recipe=self.state.selected_recipe,
        )
        self.session.commit(transitions.site_completed(self.state, site))
        return self.session.log("Foundry sequence complete. Store is live for testing.")

    # ------------------------------------------------------------------
    # Session actions
    # ------------------------------------------------------------------

    def remix(self, site: GeneratedSite) -> WorkflowState:
        """Re-open a stored site in preview without running any phase."""
        self.session.commit(transitions.remixed(self.state, site))
        return self.session.log(f"Reloading archive: {site.name}")

    def reset(self) -> WorkflowState:
        return self.session.commit(transitions.reset_state(self.state))

    def select_recipe(self, recipe: Recipe | str) -> WorkflowState:
        if self.state.is_processing:
            logger.warning("select_recipe ignored while a phase is running")
            return self.state
        return self.session.commit(transitions.recipe_selected(self.state, Recipe(recipe)))

    def select_page(self, index: int) -> WorkflowState:
        """Change the active site's page; mirrored into its gallery entry."""
        site = self.state.site
        if site is None:
            return self.state
        if not 0 <= index < len(site.pages):
            raise ValueError(f"Page index {index} out of range for {len(site.pages)} page(s)")
        updated = site.model_copy(update={"active_page_index": index})
        return self.session.commit(transitions.replace_active_site(self.state, updated))

    def hot_swap_asset(self, asset_id: str, new_reference: str) -> WorkflowState:
        new_state = hot_swap_asset(self.state, asset_id, new_reference)
        if new_state is self.state:
            logger.debug("hot_swap_asset: nothing to swap for asset %s", asset_id)
            return self.state
        self.session.commit(new_state)
        return self.session.log(f"Asset {asset_id} hot-swapped.")

    def record_deployment(self, deployment: DeploymentState) -> WorkflowState:
        new_state = record_deployment(self.state, deployment)
        if new_state is self.state:
            logger.debug("record_deployment: no active site")
            return self.state
        self.session.commit(new_state)
        return self.session.log(f"Deployment sync verified: {deployment.url or deployment.status}")

    # ------------------------------------------------------------------
    # Failure handling
    # ------------------------------------------------------------------

    def _fail_upload(self, message: str) -> WorkflowState:
        self.session.commit(transitions.upload_failed(self.state, message))
        return self.session.log(message, "error")

    def _fail_run(self, phase: str, exc: Exception) -> WorkflowState:
        logger.debug("%s phase failed", phase, exc_info=True)
        message = str(exc) or f"{phase} failed."
        self.session.commit(transitions.run_failed(self.state, message))
        return self.session.log(message, "error")
