"""Hand finished archives to the host's save-file capability."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Delivery(Protocol):
    """Receives the finished archive exactly once per successful build."""

    async def deliver(self, filename: str, data: bytes) -> Path:
        """Persist *data* under *filename* and return where it landed."""
        ...


class DirectoryDelivery:
    """Save archives into a local directory."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir

    async def deliver(self, filename: str, data: bytes) -> Path:
        return await asyncio.to_thread(self._write, filename, data)

    def _write(self, filename: str, data: bytes) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        dest = self.output_dir / filename
        # Write beside the target and rename so a failed write leaves nothing behind.
        fd, tmp_name = tempfile.mkstemp(dir=self.output_dir, suffix=".part")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            Path(tmp_name).replace(dest)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Saved archive %s (%d bytes)", dest, len(data))
        return dest
