"""BoardForge export pipeline - enumerate, name, assemble, compress, deliver."""

from boardforge.pipeline.assembly import ArchiveTree, assemble_archive, create_root
from boardforge.pipeline.compression import compress_archive
from boardforge.pipeline.delivery import Delivery, DirectoryDelivery
from boardforge.pipeline.enumerator import (
    can_export,
    count_exportable,
    produce_ordered_items,
)
from boardforge.pipeline.export import export_archive, validate_export
from boardforge.pipeline.naming import archive_filename, sanitize
from boardforge.pipeline.progress import ExportProgress, ProgressState, display_percent
from boardforge.pipeline.session import ExportSession

__all__ = [
    "ArchiveTree",
    "Delivery",
    "DirectoryDelivery",
    "ExportProgress",
    "ExportSession",
    "ProgressState",
    "archive_filename",
    "assemble_archive",
    "can_export",
    "compress_archive",
    "count_exportable",
    "create_root",
    "display_percent",
    "export_archive",
    "produce_ordered_items",
    "sanitize",
    "validate_export",
]
