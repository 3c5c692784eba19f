"""CLI entry point using Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from boardforge.models.enums import ImageFormat, OrganizationMode, QualityMode

if TYPE_CHECKING:
    from boardforge.models import Project
    from boardforge.pipeline.progress import ProgressState

app = typer.Typer(
    name="boardforge",
    help="Export storyboard projects as organized ZIP archives.",
    no_args_is_help=True,
)


def _load_project(project_path: Path) -> Project:
    from boardforge.models.project import Project, ProjectLoadError

    try:
        return Project.load(project_path)
    except ProjectLoadError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


@app.command()
def export(
    project_path: Annotated[Path, typer.Argument(help="Path to project directory or JSON")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Directory to save the archive in"),
    ] = None,
    organization: Annotated[
        OrganizationMode,
        typer.Option("--organization", "-O", help="Folder layout"),
    ] = OrganizationMode.BY_TYPE,
    image_format: Annotated[
        ImageFormat,
        typer.Option("--format", "-f", help="Image file extension"),
    ] = ImageFormat.PNG,
    quality: Annotated[
        QualityMode,
        typer.Option("--quality", "-q", help="Quality preset (recorded only)"),
    ] = QualityMode.ORIGINAL,
    panels: Annotated[bool, typer.Option("--panels/--no-panels")] = True,
    characters: Annotated[bool, typer.Option("--characters/--no-characters")] = True,
    locations: Annotated[bool, typer.Option("--locations/--no-locations")] = True,
    library: Annotated[bool, typer.Option("--library/--no-library")] = True,
    generations: Annotated[bool, typer.Option("--generations/--no-generations")] = True,
    script: Annotated[bool, typer.Option("--script/--no-script")] = True,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Validate export without writing files"),
    ] = False,
) -> None:
    """Export a project as a ZIP archive."""
    from boardforge.models.export import ExportConfig

    project = _load_project(project_path)
    export_config = ExportConfig(
        organization=organization,
        image_format=image_format,
        quality=quality,
        include_panels=panels,
        include_characters=characters,
        include_locations=locations,
        include_library=library,
        include_generations=generations,
        include_script=script,
    )

    if dry_run:
        from boardforge.pipeline.export import validate_export

        result = validate_export(project, export_config)
        typer.echo("Dry run: export validation")
        for check in result.checks:
            symbol = "✓" if check.passed else "✗"
            typer.echo(f"  {symbol} {check.label}")
            if check.message:
                typer.echo(f"    {check.message}")
        typer.echo(f"Archive: {result.archive_name} (root folder {result.root_folder}/)")
        typer.echo(f"Estimated files: {result.estimated_files}")
        if not result.valid:
            raise typer.Exit(1)
        return

    import asyncio

    from boardforge.config import load_config
    from boardforge.models.enums import ExportPhase, NotificationLevel
    from boardforge.pipeline.delivery import DirectoryDelivery
    from boardforge.pipeline.session import ExportSession

    config = load_config()

    def _notify(message: str, level: NotificationLevel) -> None:
        typer.echo(message, err=level is NotificationLevel.ERROR)

    session = ExportSession(
        project,
        DirectoryDelivery(output or config.exports_dir),
        config=export_config,
        notify=_notify,
        app_config=config,
    )
    if not session.can_export:
        typer.echo("Error: nothing selected for export.", err=True)
        raise typer.Exit(1)

    seen_phases: list[ExportPhase] = []

    def _report(state: ProgressState) -> None:
        if not seen_phases or seen_phases[-1] is not state.phase:
            seen_phases.append(state.phase)
            typer.echo(f"{state.phase.value.capitalize()}...")
        elif state.phase is ExportPhase.PROCESSING:
            typer.echo(f"  [{state.current}/{state.total}] {state.current_file}")

    result = asyncio.run(session.run(_report))
    if result is None:
        raise typer.Exit(1)
    typer.echo(f"Saved {result.location}")


@app.command()
def tui(
    project_path: Annotated[Path, typer.Argument(help="Path to project directory or JSON")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Directory to save the archive in"),
    ] = None,
) -> None:
    """Open the interactive export view."""
    from boardforge.app import BoardForgeApp

    project = _load_project(project_path)
    BoardForgeApp(project, output_dir=output).run()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool, typer.Option("--version", "-v", help="Show version")
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Log pipeline activity")
    ] = False,
) -> None:
    """BoardForge - storyboard project export and archive builder."""
    if version:
        from boardforge import __version__

        typer.echo(f"boardforge {__version__}")
        raise typer.Exit()
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
