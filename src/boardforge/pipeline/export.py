"""Run a complete archive build, and validate one without writing anything."""

from __future__ import annotations

import io
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, TypeAlias

from PIL import Image

from boardforge.config import AppConfig, load_config
from boardforge.models.enums import ExportPhase, ItemCategory, NotificationLevel
from boardforge.pipeline.assembly import (
    SCRIPT_FILENAME,
    assemble_archive,
    create_root,
    decode_payload,
)
from boardforge.pipeline.compression import compress_archive
from boardforge.pipeline.enumerator import (
    can_export,
    count_exportable,
    produce_ordered_items,
)
from boardforge.pipeline.naming import archive_filename, root_folder_name
from boardforge.pipeline.progress import ExportProgress

if TYPE_CHECKING:
    from boardforge.models import ExportConfig, Project
    from boardforge.pipeline.delivery import Delivery

logger = logging.getLogger(__name__)

Notifier: TypeAlias = Callable[[str, NotificationLevel], None]

FAILURE_MESSAGE = "Failed to create ZIP archive"

# Pillow format names as they appear in the chosen extension.
_FORMAT_NAMES = {"png": "PNG", "jpg": "JPEG"}


class NothingToExportError(ValueError):
    """Raised when a build is requested for a configuration that exports no files."""


@dataclass
class ExportResult:
    """Outcome of a successful build."""

    filename: str
    location: Path
    total: int
    paths: list[str] = field(default_factory=list)


def _ignore(message: str, level: NotificationLevel) -> None:
    logger.debug("Notification (%s): %s", level.value, message)


async def export_archive(
    project: Project,
    config: ExportConfig,
    delivery: Delivery,
    *,
    notify: Notifier | None = None,
    progress: ExportProgress | None = None,
    app_config: AppConfig | None = None,
) -> ExportResult | None:
    """Build the project archive and hand it to *delivery*.

    Phases run ``preparing -> processing -> compressing -> complete``.  Any
    failure moves *progress* to ``error``, sends a single failure notification
    and returns ``None``; *delivery* is only called with a complete archive.

    Parameters
    ----------
    project:
        In-memory project collections.
    config:
        Frozen export configuration snapshot.
    delivery:
        Receives the finished archive bytes.
    notify:
        Notification sink for the success/failure message.
    progress:
        State machine to drive; a fresh one is created when omitted.
    app_config:
        Optional app-level config.  Loaded from defaults if not provided.

    Raises
    ------
    NothingToExportError
        If the configuration selects no files.  Raised before any state change.
    """
    if app_config is None:
        app_config = load_config()
    notify = notify or _ignore
    progress = progress or ExportProgress()

    if not can_export(config, project):
        msg = "nothing selected for export"
        raise NothingToExportError(msg)

    progress.transition(ExportPhase.PREPARING, current_file="Initializing...")
    try:
        total = count_exportable(config, project)
        progress.transition(
            ExportPhase.PROCESSING, total=total, current_file="Processing assets...",
        )
        tree = create_root(project.name)
        items = produce_ordered_items(config, project)
        assemble_archive(
            tree, items, config,
            script_data=project.script_data,
            on_file=progress.item_done,
        )

        progress.transition(ExportPhase.COMPRESSING, current_file="Compressing archive...")
        data = await compress_archive(
            tree,
            on_progress=lambda pct: progress.transition(
                ExportPhase.COMPRESSING,
                compress_percent=pct,
                current_file=f"Compressing: {round(pct)}%",
            ),
            level=app_config.archive.compression_level,
        )

        filename = archive_filename(project.name)
        location = await delivery.deliver(filename, data)
    except Exception:
        logger.exception("Export failed")
        progress.transition(ExportPhase.ERROR, current_file="Export failed")
        notify(FAILURE_MESSAGE, NotificationLevel.ERROR)
        return None

    progress.transition(
        ExportPhase.COMPLETE, current=total, current_file="Export complete!",
    )
    notify(f"Exported {total} files in ZIP archive", NotificationLevel.SUCCESS)
    return ExportResult(filename=filename, location=location, total=total, paths=tree.paths)


# ---------------------------------------------------------------------------
# Dry-run validation
# ---------------------------------------------------------------------------


@dataclass
class DryRunCheck:
    """A single validation result for the dry-run report."""

    label: str
    passed: bool
    message: str = ""


@dataclass
class DryRunResult:
    """Aggregated result of a dry-run export validation."""

    checks: list[DryRunCheck] = field(default_factory=list)
    archive_name: str = ""
    root_folder: str = ""
    estimated_files: int = 0

    @property
    def valid(self) -> bool:
        return all(c.passed for c in self.checks)


def _detect_format(data: bytes) -> str | None:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.format
    except (OSError, Image.DecompressionBombError):
        return None


def validate_export(project: Project, config: ExportConfig) -> DryRunResult:
    """Validate all export inputs without building or writing the archive.

    Returns a :class:`DryRunResult` describing what *would* be exported.
    """
    checks: list[DryRunCheck] = []

    # 1. Project loaded
    checks.append(DryRunCheck(label=f"Project loaded ({project.name})", passed=True))

    # 2. Per-category file counts
    items = produce_ordered_items(config, project)
    for category in ItemCategory:
        n = sum(1 for item in items if item.category is category)
        if n:
            checks.append(DryRunCheck(
                label=f"{n} {category.value} file{'s' if n != 1 else ''}",
                passed=True,
            ))

    # 3. Script metadata
    writes_script = config.include_script and project.script_data is not None
    if writes_script:
        checks.append(DryRunCheck(label=f"Script metadata ({SCRIPT_FILENAME})", passed=True))

    # 4. Something to export
    total = count_exportable(config, project)
    checks.append(DryRunCheck(
        label="Files selected for export",
        passed=total > 0,
        message="" if total else "Enable at least one category that has assets",
    ))

    # 5. Payload decoding and encoding vs. chosen extension
    undecodable = 0
    mislabelled = 0
    wanted = _FORMAT_NAMES[config.image_format.value]
    for item in items:
        data = decode_payload(item.payload)
        if data is None:
            undecodable += 1
            continue
        detected = _detect_format(data)
        if detected is not None and detected != wanted:
            mislabelled += 1
    missing = total - len(items)
    skipped = undecodable + missing
    checks.append(DryRunCheck(
        label="Payloads decodable",
        passed=True,
        message=f"{skipped} counted item(s) will be skipped" if skipped else "",
    ))
    if mislabelled:
        checks.append(DryRunCheck(
            label=f"Extension .{config.image_format.value}",
            passed=True,
            message=(
                f"{mislabelled} payload(s) are not {wanted}-encoded; "
                "bytes are exported unchanged"
            ),
        ))

    return DryRunResult(
        checks=checks,
        archive_name=archive_filename(project.name),
        root_folder=root_folder_name(project.name),
        estimated_files=total + (1 if writes_script else 0),
    )
