"""Rich progress display that follows a session's state changes."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from forge.schemas.workflow import LogEntry, WorkflowState, WorkflowStep

console = Console()

_STEP_LABELS: dict[WorkflowStep, str] = {
    WorkflowStep.UPLOAD: "Reading uploads",
    WorkflowStep.ANALYSIS: "Deconstructing pixels",
    WorkflowStep.RESEARCH: "Scanning market intelligence",
    WorkflowStep.GENERATION: "Forging visual assets",
    WorkflowStep.CODING: "Architecting source structure",
}

_LOG_STYLES = {"info": "dim", "warn": "yellow", "error": "red"}


class PipelineProgress:
    """Spinner for the running step plus a persistent log trail.

    Pass ``on_change`` as a ``ForgeSession`` observer.
    """

    def __init__(self) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_id: int | None = None

    def __enter__(self) -> "PipelineProgress":
        self._progress.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.__exit__(*args)

    def on_change(self, previous: WorkflowState, current: WorkflowState) -> None:
        # The log restarts at every new upload.
        seen = len(previous.logs) if len(current.logs) >= len(previous.logs) else 0
        for entry in current.logs[seen:]:
            self.log_event(entry)
        if current.step != previous.step or current.is_processing != previous.is_processing:
            self._show_step(current)

    def log_event(self, entry: LogEntry) -> None:
        """Print a persistent log line above the spinner (not overwritten)."""
        style = _LOG_STYLES[entry.level]
        self._progress.console.print(f"  [{style}]{escape(str(entry))}[/]", highlight=False)

    def print_phase(self, label: str) -> None:
        """Print a phase header outside the progress display."""
        self._progress.console.print(Panel(f"[bold]{label}[/bold]", style="blue"))

    def _show_step(self, state: WorkflowState) -> None:
        if self._task_id is not None:
            self._progress.update(self._task_id, completed=True, visible=False)
            self._task_id = None
        label = _STEP_LABELS.get(state.step)
        if state.is_processing and label:
            self._task_id = self._progress.add_task(f"[cyan]{label}[/]", total=None)
