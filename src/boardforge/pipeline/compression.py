"""Serialize an archive tree into a DEFLATE-compressed ZIP byte stream."""

from __future__ import annotations

import asyncio
import io
import logging
import zipfile
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from boardforge.pipeline.assembly import ArchiveTree

logger = logging.getLogger(__name__)

# Tuned for photographic payloads rather than maximum ratio.
DEFAULT_COMPRESSION_LEVEL = 6


class CompressionError(RuntimeError):
    """Raised when the archive cannot be serialized."""


async def compress_archive(
    tree: ArchiveTree,
    on_progress: Callable[[float], None] | None = None,
    *,
    level: int = DEFAULT_COMPRESSION_LEVEL,
) -> bytes:
    """Write every folder and file of *tree* into one ZIP archive.

    Yields to the event loop after each entry.  *on_progress* receives a
    non-decreasing percentage and always ends with ``100.0``.

    Raises
    ------
    CompressionError
        If any entry fails to serialize.  No partial bytes are returned.
    """
    buffer = io.BytesIO()
    files = list(tree.iter_files())
    total = len(files)

    try:
        with zipfile.ZipFile(
            buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=level,
        ) as zf:
            for folder in tree.iter_folders():
                zf.writestr(f"{folder.path}/", b"")
            for done, entry in enumerate(files, start=1):
                zf.writestr(entry.path, entry.data)
                if on_progress is not None:
                    on_progress(done / total * 100)
                await asyncio.sleep(0)
    except (OSError, ValueError, zipfile.LargeZipFile) as exc:
        buffer.close()
        msg = f"failed to compress archive: {exc}"
        raise CompressionError(msg) from exc

    if on_progress is not None and total == 0:
        on_progress(100.0)

    data = buffer.getvalue()
    logger.info("Compressed %d files into %d bytes (level %d)", total, len(data), level)
    return data
