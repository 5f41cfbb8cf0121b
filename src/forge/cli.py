"""Typer CLI: ``forge build``, ``forge gallery`` and the gallery actions."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from forge.config import load_config, load_overrides
from forge.schemas.config import ForgeConfig
from forge.schemas.research import ResearchOverrides, ResearchResult
from forge.schemas.site import DeploymentState, GeneratedSite, Recipe
from forge.storage.gallery import GalleryStore
from forge.workflow.sequencer import PhaseSequencer
from forge.workflow.session import ForgeSession, StateObserver

# Load .env file from project root (if it exists)
load_dotenv()

app = typer.Typer(
    name="forge",
    help="Site Forge: turn design mockups into a generated multi-page website.",
    no_args_is_help=True,
)
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", help="Path to forge-config.yml (defaults apply without one).")
VerboseOption = typer.Option(False, "--verbose", "-v")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every HTTP request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_config_or_exit(config: Optional[Path]) -> ForgeConfig:
    try:
        return load_config(config)
    except Exception as exc:
        console.print(f"[red]Config validation failed:[/] {exc}")
        raise typer.Exit(code=1)


def _open_session(cfg: ForgeConfig, on_change: StateObserver | None = None) -> ForgeSession:
    return ForgeSession(
        GalleryStore(cfg.gallery_path),
        gallery_limit=cfg.gallery_limit,
        recipe=cfg.recipe,
        on_change=on_change,
    )


def _make_sequencer(session: ForgeSession, cfg: ForgeConfig, *, dry_run: bool = False) -> PhaseSequencer:
    from forge.services.llm import LLMServices

    if dry_run:
        from forge.shared.llm_client import DryRunClient
        client = DryRunClient()
    else:
        from forge.shared.llm_client import LLMClient
        client = LLMClient(text_model=cfg.text_model, image_model=cfg.image_model)

    return PhaseSequencer(session, LLMServices(client), cfg)


def _offline_sequencer(session: ForgeSession, cfg: ForgeConfig) -> PhaseSequencer:
    """Sequencer for gallery actions, which never call a generation service."""
    return _make_sequencer(session, cfg, dry_run=True)


def _find_site_or_exit(session: ForgeSession, site_id: str) -> GeneratedSite:
    site = session.state.gallery.get(site_id)
    if site is None:
        console.print(f"[red]No site with id {site_id!r} in the gallery.[/] Run [bold]forge gallery[/] to list them.")
        raise typer.Exit(code=1)
    return site


def _export(site: GeneratedSite, out_dir: Path) -> None:
    from forge.output.site_writer import write_site

    try:
        paths = write_site(site, out_dir)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Could not export the site:[/] {exc}")
        raise typer.Exit(code=1)
    console.print(f"[green]Site written to:[/] {out_dir}  ({len(paths) - 1} page(s))")


def _print_research(research: ResearchResult) -> None:
    console.print("\n[bold]── Research ──[/]\n")
    mc = research.market_content
    console.print(f"  Value proposition: {mc.value_proposition or '(none)'}")
    if mc.services:
        console.print(f"  Services:          {', '.join(mc.services)}")
    if research.trends:
        console.print(f"  Trends:            {', '.join(research.trends)}")
    if research.competitors:
        console.print(f"  Competitors:       {', '.join(research.competitors)}")
    ds = research.recommended_design_system
    console.print(f"  Design system:     {ds.primary_color} / {ds.font_style} / {ds.border_radius}")
    for product in research.products or []:
        source = "user image" if product.image else "to generate"
        console.print(f"  Product:           {product.name} {product.price} ({source})")
    if research.payment_config:
        console.print(f"  Payment:           {research.payment_config.method}")
    console.print("")


@app.command()
def validate(
    config: Path = typer.Option(..., "--config", "-c", help="Path to forge-config.yml"),
    verbose: bool = VerboseOption,
) -> None:
    """Validate a configuration file."""
    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)

    console.print("[green]Config is valid![/]\n")
    console.print(f"  Gallery:      {cfg.gallery_path} (max {cfg.gallery_limit})")
    console.print(f"  Recipe:       {cfg.recipe.value}")
    console.print(f"  Text model:   {cfg.text_model}")
    console.print(f"  Image model:  {cfg.image_model}")
    console.print(f"  Output dir:   {cfg.output_directory}")


@app.command()
def build(
    images: list[Path] = typer.Argument(..., help="Design mockups to turn into a site."),
    config: Optional[Path] = ConfigOption,
    overrides: Optional[Path] = typer.Option(None, "--overrides", help="YAML file with research corrections."),
    recipe: Optional[Recipe] = typer.Option(None, "--recipe", help="Visual preset for the generated site."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the research review prompt."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Where to write the site (default: <output_directory>/<site id>)."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Run the full pipeline with mock data (no API calls)."),
    verbose: bool = VerboseOption,
) -> None:
    """Run the full pipeline: analysis, research, review, assets, code."""
    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)

    patch = None
    if overrides:
        try:
            patch = load_overrides(overrides)
        except Exception as exc:
            console.print(f"[red]Overrides file invalid:[/] {exc}")
            raise typer.Exit(code=1)

    if dry_run:
        console.print("[yellow]DRY-RUN mode, no API calls will be made.[/]\n")

    session = _open_session(cfg)
    try:
        sequencer = _make_sequencer(session, cfg, dry_run=dry_run)
    except Exception as exc:
        console.print(f"[red]Could not create the model client:[/] {exc}")
        raise typer.Exit(code=1)
    if recipe:
        sequencer.select_recipe(recipe)

    asyncio.run(_run_build(sequencer, images, patch, assume_yes=yes))

    site = session.state.site
    console.print(f"\n[bold]Site ready:[/] {site.name}  [dim]({site.id})[/]")
    _export(site, output or Path(cfg.output_directory) / site.id)


async def _run_build(
    sequencer: PhaseSequencer,
    images: list[Path],
    overrides: ResearchOverrides | None,
    *,
    assume_yes: bool,
) -> None:
    """Drive one run end to end, pausing for review after research."""
    from forge.shared.progress import PipelineProgress

    session = sequencer.session
    with PipelineProgress() as progress:
        session.on_change = progress.on_change
        progress.print_phase("Analysis & Research")
        state = await sequencer.accept_uploads(images)

    if state.error:
        console.print(f"[red]Pipeline failed:[/] {state.error}")
        raise typer.Exit(code=1)

    _print_research(state.research)
    if not assume_yes:
        loop = asyncio.get_running_loop()
        proceed = await loop.run_in_executor(
            None, lambda: Confirm.ask("Generate the site with this research?", default=True)
        )
        if not proceed:
            console.print("[red]Aborted.[/]")
            raise typer.Exit(code=1)

    with PipelineProgress() as progress:
        session.on_change = progress.on_change
        progress.print_phase("Assets & Code")
        state = await sequencer.confirm_refinement(overrides)
    session.on_change = None

    if state.error or state.site is None:
        console.print(f"[red]Pipeline failed:[/] {state.error}")
        raise typer.Exit(code=1)


@app.command()
def gallery(
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """List previously generated sites, most recent first."""
    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)
    session = _open_session(cfg)

    sites = session.state.gallery.sites
    if not sites:
        console.print("[dim]The gallery is empty. Run [bold]forge build[/] first.[/]")
        return

    table = Table(title=f"Gallery ({len(sites)}/{session.state.gallery.limit})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Pages", justify="right")
    table.add_column("Assets", justify="right")
    table.add_column("Created")
    table.add_column("Deployment")
    for site in sites:
        deployed = (site.deployment.url or site.deployment.status) if site.deployment else ""
        table.add_row(
            site.id,
            site.name,
            str(len(site.pages)),
            str(len(site.assets)),
            f"{site.timestamp:%Y-%m-%d %H:%M}",
            deployed,
        )
    console.print(table)


@app.command()
def remix(
    site_id: str = typer.Argument(..., help="Gallery site id."),
    config: Optional[Path] = ConfigOption,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Where to write the site."),
    verbose: bool = VerboseOption,
) -> None:
    """Re-open a gallery site and export it again, without regenerating anything."""
    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)
    session = _open_session(cfg)
    site = _find_site_or_exit(session, site_id)

    state = _offline_sequencer(session, cfg).remix(site)
    _export(state.site, output or Path(cfg.output_directory) / site.id)


@app.command("swap-asset")
def swap_asset(
    site_id: str = typer.Argument(..., help="Gallery site id."),
    asset_id: str = typer.Argument(..., help="Asset id within the site."),
    new_reference: str = typer.Argument(..., help="Replacement image URL or data URI."),
    config: Optional[Path] = ConfigOption,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also export the updated site here."),
    verbose: bool = VerboseOption,
) -> None:
    """Replace one asset everywhere the site's pages embed it."""
    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)
    session = _open_session(cfg)
    site = _find_site_or_exit(session, site_id)

    if site.find_asset(asset_id) is None:
        console.print(f"[yellow]Site {site_id} has no asset {asset_id!r}; nothing changed.[/]")
        return

    sequencer = _offline_sequencer(session, cfg)
    sequencer.remix(site)
    state = sequencer.hot_swap_asset(asset_id, new_reference)
    console.print(f"[green]Asset {asset_id} swapped[/] in {len(state.site.pages)} page(s).")
    if output:
        _export(state.site, output)


@app.command("record-deploy")
def record_deploy(
    site_id: str = typer.Argument(..., help="Gallery site id."),
    url: Optional[str] = typer.Option(None, "--url", help="Published URL."),
    status: str = typer.Option("ready", "--status", help="idle, authorizing, uploading, ready or error."),
    platform: Optional[str] = typer.Option(None, "--platform", help="netlify or github."),
    provider_site_id: Optional[str] = typer.Option(None, "--site-id", help="Provider-assigned site id."),
    repo_url: Optional[str] = typer.Option(None, "--repo-url"),
    repo_name: Optional[str] = typer.Option(None, "--repo-name"),
    pr_url: Optional[str] = typer.Option(None, "--pr-url"),
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Attach a finished deployment to a gallery site."""
    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)
    session = _open_session(cfg)
    site = _find_site_or_exit(session, site_id)

    try:
        deployment = DeploymentState(
            status=status,
            url=url,
            site_id=provider_site_id,
            repo_url=repo_url,
            repo_name=repo_name,
            pr_url=pr_url,
            platform=platform,
            timestamp=datetime.now(),
        )
    except Exception as exc:
        console.print(f"[red]Invalid deployment:[/] {exc}")
        raise typer.Exit(code=1)

    sequencer = _offline_sequencer(session, cfg)
    sequencer.remix(site)
    sequencer.record_deployment(deployment)
    console.print(f"[green]Deployment recorded[/] for {site.name}: {url or status}")
