"""Label verification CLI."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live

from labelcheck.cli.render import (
    availability_text,
    comparison_view,
    controls_view,
    extraction_view,
    progress_view,
    rich_theme_for,
    validation_view,
)
from labelcheck.client.base import BaseServiceClient
from labelcheck.client.factory import ServiceClientFactory
from labelcheck.client.outcome import ServiceGateway
from labelcheck.config.settings import Settings
from labelcheck.documents.exceptions import RejectedDocumentError
from labelcheck.documents.loader import DocumentLoader
from labelcheck.documents.models import Document
from labelcheck.logging.logger import Log
from labelcheck.monitor.availability import AvailabilitySignal, build_monitor
from labelcheck.pdf.factory import PageCounterFactory
from labelcheck.preferences.models import Theme
from labelcheck.preferences.repository import PreferencesRepository
from labelcheck.workflow.models import ErrorSource, WorkflowPhase, WorkflowState
from labelcheck.workflow.orchestrator import build_orchestrator

app = typer.Typer(
    name="labelcheck",
    help="Extract and validate pharmaceutical label text through the remote OCR service",
    add_completion=False,
)


def _bootstrap() -> tuple[Settings, Console]:
    settings = Settings()
    preferences = PreferencesRepository(Path(settings.preferences_path))
    console = Console(theme=rich_theme_for(preferences.get_theme()))
    Log.reset()
    Log.configure(settings.log_level, console=console)
    return settings, console


def _load_document(settings: Settings, console: Console, path: Path) -> Document:
    loader = DocumentLoader(PageCounterFactory.create(settings))
    try:
        return loader.load(path)
    except RejectedDocumentError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from exc


@app.command()
def scan(
    path: Path = typer.Argument(..., help="Image or PDF of the label to check"),
) -> None:
    """Extract text from a label and validate it automatically."""
    settings, console = _bootstrap()
    document = _load_document(settings, console, path)
    console.print(f"[heading]Scanning:[/heading] {document.filename} ({document.content_type})")

    state = asyncio.run(_run_scan(settings, console, document))

    if state.extraction is not None:
        console.print(extraction_view(state.extraction, state.last_extracted_at))
    if state.validation is not None:
        console.print(validation_view(state.validation))
    if state.error:
        label = "Validation error" if state.error_source is ErrorSource.VALIDATION else "Error"
        console.print(f"[red]{label}:[/red] {state.error}")
    if state.phase is WorkflowPhase.FAILED:
        raise typer.Exit(code=1)


async def _run_scan(settings: Settings, console: Console, document: Document) -> WorkflowState:
    client = ServiceClientFactory.create(settings)
    orchestrator = build_orchestrator(settings, client)
    monitor = build_monitor(settings, client)
    try:
        with Live(
            progress_view(orchestrator.progress, monitor.signal),
            console=console,
            refresh_per_second=10,
            transient=True,
        ) as live:

            def refresh(_: object) -> None:
                live.update(progress_view(orchestrator.progress, monitor.signal))

            orchestrator.subscribe(refresh)
            monitor.subscribe(refresh)
            async with monitor:
                orchestrator.select_document(document)
                state = await orchestrator.extract()
                if orchestrator.progress.terminal:
                    await asyncio.sleep(settings.progress_reset_delay_seconds)
        return state
    finally:
        orchestrator.close()
        await client.aclose()


@app.command()
def verify(
    text: str = typer.Argument(..., help="Label text to validate"),
) -> None:
    """Validate a piece of label text without OCR."""
    settings, console = _bootstrap()

    async def _verify() -> None:
        client = ServiceClientFactory.create(settings)
        try:
            outcome = await ServiceGateway(client).validate_text(text)
        finally:
            await client.aclose()
        if not outcome.success or outcome.data is None:
            console.print(f"[red]Error:[/red] {outcome.error}")
            raise typer.Exit(code=1)
        console.print(validation_view(outcome.data))

    asyncio.run(_verify())


@app.command()
def rules() -> None:
    """List the verified controls known to the service."""
    settings, console = _bootstrap()

    async def _rules() -> None:
        client = ServiceClientFactory.create(settings)
        try:
            outcome = await ServiceGateway(client).list_verified_controls()
        finally:
            await client.aclose()
        if not outcome.success or outcome.data is None:
            console.print(f"[red]Error:[/red] {outcome.error}")
            raise typer.Exit(code=1)
        if not outcome.data:
            console.print("[muted]No verified controls found[/muted]")
            return
        console.print(controls_view(outcome.data))

    asyncio.run(_rules())


@app.command()
def compare(
    path: Path = typer.Argument(..., help="Image or PDF to compare against verified controls"),
) -> None:
    """Compare a label against the verified controls."""
    settings, console = _bootstrap()
    document = _load_document(settings, console, path)

    async def _compare() -> None:
        client = ServiceClientFactory.create(settings)
        try:
            outcome = await ServiceGateway(client).run_comparison(document)
        finally:
            await client.aclose()
        if not outcome.success or outcome.data is None:
            console.print(f"[red]Error:[/red] {outcome.error}")
            raise typer.Exit(code=1)
        console.print(comparison_view(outcome.data))

    asyncio.run(_compare())


@app.command()
def health() -> None:
    """Probe the service once and report whether it is reachable."""
    settings, console = _bootstrap()

    async def _health(client: BaseServiceClient) -> AvailabilitySignal:
        monitor = build_monitor(settings, client)
        try:
            await monitor.probe_once()
        finally:
            await client.aclose()
        return monitor.signal

    signal = asyncio.run(_health(ServiceClientFactory.create(settings)))
    console.print(availability_text(signal))
    if not signal.online:
        raise typer.Exit(code=1)


@app.command()
def theme(
    value: Theme | None = typer.Argument(None, help="Set the theme; omit to show it"),
) -> None:
    """Show or change the persisted light/dark preference."""
    settings, console = _bootstrap()
    preferences = PreferencesRepository(Path(settings.preferences_path))
    if value is not None:
        preferences.set_theme(value)
    console.print(f"Theme: [accent]{preferences.get_theme().value}[/accent]")
