"""Stateless mapping of client state onto rich renderables."""

from datetime import datetime

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text
from rich.theme import Theme as RichTheme

from labelcheck.client.models import (
    ComparisonResult,
    ControlStatus,
    ExtractionResult,
    RiskLevel,
    ValidationResult,
    VerifiedControl,
)
from labelcheck.monitor.availability import AvailabilitySignal
from labelcheck.preferences.models import Theme
from labelcheck.progress.models import ProgressSnapshot, ProgressStatus

_PALETTES: dict[Theme, dict[str, str]] = {
    Theme.DARK: {"muted": "grey62", "accent": "bright_green", "heading": "bold white"},
    Theme.LIGHT: {"muted": "grey35", "accent": "dark_green", "heading": "bold black"},
}

RISK_STYLES: dict[RiskLevel, str] = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
    RiskLevel.UNKNOWN: "muted",
}

CONTROL_STATUS_STYLES: dict[ControlStatus, str] = {
    ControlStatus.APPROVED: "green",
    ControlStatus.PENDING: "yellow",
    ControlStatus.REJECTED: "red",
    ControlStatus.UNKNOWN: "muted",
}

PROGRESS_STYLES: dict[ProgressStatus, str] = {
    ProgressStatus.IDLE: "muted",
    ProgressStatus.RUNNING: "accent",
    ProgressStatus.STALLED: "blink yellow",
    ProgressStatus.SUCCEEDED: "green",
    ProgressStatus.FAILED: "red",
}

_NOT_AVAILABLE = "N/A"


def rich_theme_for(theme: Theme) -> RichTheme:
    return RichTheme(_PALETTES[theme])


def availability_text(signal: AvailabilitySignal) -> Text:
    if signal.online:
        return Text("● API online", style="green")
    return Text("● API offline", style="red")


def progress_view(snapshot: ProgressSnapshot, signal: AvailabilitySignal) -> RenderableType:
    style = PROGRESS_STYLES[snapshot.status]
    bar = ProgressBar(
        total=100.0,
        completed=snapshot.fraction,
        complete_style=style,
        finished_style=style,
        width=40,
    )
    grid = Table.grid(padding=(0, 1))
    grid.add_row(bar, Text(f"{snapshot.fraction:5.1f}%"), Text(snapshot.label, style=style))
    return Group(grid, availability_text(signal))


def extraction_view(result: ExtractionResult, extracted_at: datetime | None = None) -> Panel:
    meta = f"Model: {result.engine_name} • Time: {result.processing_time_seconds:g}s"
    if result.pages_processed:
        meta += f" • Pages: {result.pages_processed}"
    if extracted_at is not None:
        meta += f" • At: {extracted_at.strftime('%H:%M:%S')}"
    body = Group(
        Text(result.text or "(no text extracted)"),
        Text(meta, style="muted"),
    )
    return Panel(body, title="Extracted Text", title_align="left")


def validation_view(result: ValidationResult) -> Table:
    table = Table(title="Validation Results", show_header=False, title_justify="left")
    table.add_column("Field", style="heading")
    table.add_column("Value")
    table.add_row(
        "Risk Level",
        Text(result.risk_level.value, style=RISK_STYLES[result.risk_level]),
    )
    table.add_row("Confidence", _or_na(result.confidence_score, suffix="%"))
    table.add_row("Drug Name", _or_na(result.drug_name))
    table.add_row("Strength", _or_na(result.strength))
    table.add_row("Batch Number", _or_na(result.batch_number))
    table.add_row("Manufacturing Date", _or_na(result.manufacturing_date))
    table.add_row("Expiry Date", _or_na(result.expiry_date))
    table.add_row("Manufacturer", _or_na(result.manufacturer))
    table.add_row("License Number", _or_na(result.license_number))
    table.add_row("Serialization Present", "Yes" if result.serialization_present else "No")
    table.add_row(
        "Missing Fields",
        ", ".join(result.missing_fields) if result.missing_fields else "None",
    )
    if result.analysis_summary:
        table.add_row("Analysis Summary", result.analysis_summary)
    return table


def controls_view(controls: list[VerifiedControl]) -> Table:
    table = Table(title="Verified Controls", title_justify="left")
    table.add_column("Control Name", style="heading")
    table.add_column("Verified Text")
    table.add_column("Status")
    table.add_column("Approved At", style="muted")
    for control in controls:
        table.add_row(
            control.control_name or _NOT_AVAILABLE,
            control.verified_text or _NOT_AVAILABLE,
            Text(control.status.value, style=CONTROL_STATUS_STYLES[control.status]),
            control.approved_at.strftime("%b %d, %Y %H:%M") if control.approved_at else _NOT_AVAILABLE,
        )
    return table


def comparison_view(result: ComparisonResult) -> Table:
    table = Table(title="Comparison Result", show_header=False, title_justify="left")
    table.add_column("Check", style="heading")
    table.add_column("Outcome")
    decision_style = "green" if result.is_valid else "red"
    icon = "✅" if result.is_valid else "❌"
    table.add_row("Decision", Text(f"{icon} {result.decision}", style=decision_style))
    table.add_row("Similarity", f"{result.similarity_score:g}%")
    table.add_row("Authenticity", f"{result.authenticity_score:g}%")
    details = result.validation_details
    table.add_row("Dosage Format", _check(details.dosage_format))
    table.add_row("Expiry Format", _check(details.expiry_format))
    table.add_row("Batch Number", _check(details.batch_number))
    table.add_row("Manufacturer Presence", _check(details.manufacturer_presence))
    if result.extracted_text:
        table.add_row("Extracted Text", result.extracted_text)
    return table


def _check(passed: bool) -> Text:
    if passed:
        return Text("✅ Valid", style="green")
    return Text("❌ Invalid", style="red")


def _or_na(value: object, suffix: str = "") -> str:
    if value is None or value == "":
        return _NOT_AVAILABLE
    if isinstance(value, float):
        return f"{value:g}{suffix}"
    return f"{value}{suffix}"
