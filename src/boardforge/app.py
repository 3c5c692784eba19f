"""BoardForge - Textual TUI application entry point."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from textual.app import App
from textual.binding import Binding

if TYPE_CHECKING:
    from pathlib import Path

    from textual.binding import BindingType

    from boardforge.models.project import Project


class BoardForgeApp(App[None]):
    """Interactive export view for one loaded project."""

    TITLE = "BoardForge"
    SUB_TITLE = "Project Export"

    CSS = """
    Screen {
        background: $surface;
    }

    Header {
        background: #7c3aed;
        color: #f5f3ff;
        dock: top;
        height: 1;
    }

    Footer {
        background: #1e1b4b;
        color: #c4b5fd;
    }

    .screen-container {
        layout: vertical;
        padding: 0 2;
        background: #0f0b1e;
        height: auto;
    }

    .screen-title {
        text-style: bold;
        color: #a78bfa;
        text-align: center;
        width: 100%;
    }

    .card {
        background: #1e1b4b;
        border: round #7c3aed;
        padding: 0 2 1 2;
        margin: 1 0 0 0;
        height: auto;
    }

    .card-title {
        text-style: bold;
        color: #c4b5fd;
        margin: 0 0 1 0;
    }

    .toolbar {
        layout: horizontal;
        height: auto;
        margin: 1 0 0 0;
    }

    .row {
        layout: horizontal;
        height: auto;
    }

    Button.success {
        background: #059669;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("q", "quit", "Quit", show=True),
    ]

    def __init__(self, project: Project, *, output_dir: Path | None = None) -> None:
        super().__init__()
        self.project = project
        self.output_dir = output_dir

    def on_mount(self) -> None:
        from boardforge.screens.export_screen import ExportScreen

        self.push_screen(ExportScreen(self.project, output_dir=self.output_dir))

    def action_quit(self) -> None:  # type: ignore[override]
        """Quit unless an export is running."""
        from boardforge.screens.export_screen import ExportScreen

        if isinstance(self.screen, ExportScreen) and self.screen.running:
            self.notify("Export in progress; wait for it to finish.", severity="warning")
            return
        self.exit()
