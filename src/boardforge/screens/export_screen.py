"""Export screen - choose archive options and build the project ZIP."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar

from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import (
    Button,
    Checkbox,
    Footer,
    Header,
    Label,
    ProgressBar,
    Select,
    Static,
)

from boardforge.config import load_config
from boardforge.models.enums import (
    ExportPhase,
    ImageFormat,
    NotificationLevel,
    OrganizationMode,
    QualityMode,
)
from boardforge.pipeline.delivery import DirectoryDelivery
from boardforge.pipeline.progress import display_percent
from boardforge.pipeline.session import ExportSession

if TYPE_CHECKING:
    from pathlib import Path

    from textual.app import ComposeResult
    from textual.binding import BindingType

    from boardforge.models.project import Project
    from boardforge.pipeline.progress import ProgressState

logger = logging.getLogger(__name__)

# Checkbox id -> ExportConfig field.
_INCLUDE_FLAGS = {
    "inc-panels": ("Storyboard Panels", "include_panels"),
    "inc-characters": ("Character Sheets", "include_characters"),
    "inc-locations": ("Location Plates", "include_locations"),
    "inc-library": ("Library Assets", "include_library"),
    "inc-generations": ("All Generations", "include_generations"),
    "inc-script": ("Script Data (JSON)", "include_script"),
}

_SEVERITY = {
    NotificationLevel.SUCCESS: "information",
    NotificationLevel.INFO: "information",
    NotificationLevel.WARNING: "warning",
    NotificationLevel.ERROR: "error",
}


class ExportScreen(Screen):
    """Configure export options and build the archive."""

    name = "export"

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape", "close", "Close", show=True),
    ]

    def __init__(self, project: Project, *, output_dir: Path | None = None) -> None:
        super().__init__()
        self._app_config = load_config()
        self._session = ExportSession(
            project,
            DirectoryDelivery(output_dir or self._app_config.exports_dir),
            notify=self._notify,
            app_config=self._app_config,
        )

    @property
    def running(self) -> bool:
        return self._session.busy

    def compose(self) -> ComposeResult:
        config = self._session.config
        yield Header(show_clock=True)
        with Vertical(classes="screen-container"):
            yield Static("Download Project", classes="screen-title")
            yield Label("", id="export-total")

            with Vertical(classes="card", id="export-options"):
                yield Static("Organization", classes="card-title")
                yield Select(
                    [("By Type", "by-type"), ("By Beat", "by-beat"), ("Flat", "flat")],
                    value=config.organization.value,
                    allow_blank=False,
                    id="export-organization",
                )
                with Horizontal(classes="row"):
                    yield Select(
                        [("PNG (Lossless)", "png"), ("JPG (Smaller)", "jpg")],
                        value=config.image_format.value,
                        allow_blank=False,
                        id="export-format",
                    )
                    yield Select(
                        [("Original", "original"), ("Optimized", "optimized")],
                        value=config.quality.value,
                        allow_blank=False,
                        id="export-quality",
                    )

                yield Static("Include in Export", classes="card-title")
                for widget_id, (label, field_name) in _INCLUDE_FLAGS.items():
                    yield Checkbox(label, value=getattr(config, field_name), id=widget_id)

            with Horizontal(classes="toolbar"):
                yield Button("Download ZIP", id="btn-export", classes="success")
                yield Button("Close", id="btn-close")

            with Vertical(classes="card"):
                yield Static("Export Progress", classes="card-title")
                yield ProgressBar(total=100, show_percentage=True, show_eta=False, id="export-bar")
                yield Label("", id="export-status")
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_controls()

    # ── Option handlers ──────────────────────────────────────
    def on_select_changed(self, event: Select.Changed) -> None:
        if self.running or event.value == Select.BLANK:
            return
        match event.select.id:
            case "export-organization":
                self._session.update_config(organization=OrganizationMode(event.value))
            case "export-format":
                self._session.update_config(image_format=ImageFormat(event.value))
            case "export-quality":
                self._session.update_config(quality=QualityMode(event.value))
        self._refresh_controls()

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        if self.running or event.checkbox.id not in _INCLUDE_FLAGS:
            return
        _, field_name = _INCLUDE_FLAGS[event.checkbox.id]
        self._session.update_config(**{field_name: event.value})
        self._refresh_controls()

    # ── Button handlers ──────────────────────────────────────
    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-export":
                self._start_export()
            case "btn-close":
                self.action_close()

    def action_close(self) -> None:
        if self.running:
            self._set_status("Export in progress; wait for it to finish.")
            return
        self.app.exit()

    def _start_export(self) -> None:
        if not self._session.can_export:
            return
        self.query_one("#export-options").disabled = True
        self.query_one("#btn-close", Button).disabled = True
        self.query_one("#btn-export", Button).disabled = True
        self.run_worker(self._run_export(), exclusive=True)

    async def _run_export(self) -> None:
        result = await self._session.run(self._render_progress)
        if result is not None:
            logger.info("Archive saved to %s", result.location)
            self.set_timer(self._app_config.ui.success_close_delay, self.app.exit)
        else:
            self.set_timer(self._app_config.ui.error_reset_delay, self._reset)

    def _reset(self) -> None:
        self._session.reset()
        self.query_one("#export-options").disabled = False
        self.query_one("#btn-close", Button).disabled = False
        self.query_one("#export-bar", ProgressBar).update(progress=0)
        self._set_status("")
        self._refresh_controls()

    # ── Rendering ────────────────────────────────────────────
    def _render_progress(self, state: ProgressState) -> None:
        pct = display_percent(state, floor=self._app_config.archive.progress_floor_percent)
        self.query_one("#export-bar", ProgressBar).update(progress=pct)
        if state.phase in (ExportPhase.COMPLETE, ExportPhase.ERROR):
            text = f"{state.current_file}  {state.phase.value.capitalize()}"
        else:
            text = f"{state.current_file}  {state.current}/{state.total}"
        self._set_status(text)

    def _refresh_controls(self) -> None:
        total = self._session.total
        self.query_one("#export-total", Label).update(f"{total} files ready to export")
        self.query_one("#btn-export", Button).disabled = not self._session.can_export

    def _notify(self, message: str, level: NotificationLevel) -> None:
        self.app.notify(message, severity=_SEVERITY[level])

    def _set_status(self, text: str) -> None:
        self.query_one("#export-status", Label).update(text)
