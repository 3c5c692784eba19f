"""BoardForge TUI screens."""

from boardforge.screens.export_screen import ExportScreen

__all__ = [
    "ExportScreen",
]
