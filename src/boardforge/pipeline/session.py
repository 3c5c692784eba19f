"""Export session: the editable configuration store plus a single-build guard."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from boardforge.models.export import ExportConfig
from boardforge.pipeline.enumerator import can_export, count_exportable
from boardforge.pipeline.export import export_archive
from boardforge.pipeline.progress import ExportProgress

if TYPE_CHECKING:
    from boardforge.config import AppConfig
    from boardforge.models import Project
    from boardforge.pipeline.delivery import Delivery
    from boardforge.pipeline.export import ExportResult, Notifier
    from boardforge.pipeline.progress import ProgressListener

logger = logging.getLogger(__name__)


class ExportInProgressError(RuntimeError):
    """Raised when a build or config edit is attempted while a build runs."""


class ExportSession:
    """One export view's worth of state.

    Holds the current :class:`ExportConfig` and allows at most one active
    build.  Every build gets a fresh :class:`ExportProgress`.
    """

    def __init__(
        self,
        project: Project,
        delivery: Delivery,
        *,
        config: ExportConfig | None = None,
        notify: Notifier | None = None,
        app_config: AppConfig | None = None,
    ) -> None:
        self.project = project
        self.delivery = delivery
        self.notify = notify
        self.app_config = app_config
        self._config = config or ExportConfig()
        self._busy = False
        self.progress: ExportProgress | None = None

    @property
    def config(self) -> ExportConfig:
        return self._config

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def total(self) -> int:
        return count_exportable(self._config, self.project)

    @property
    def can_export(self) -> bool:
        return not self._busy and can_export(self._config, self.project)

    def update_config(self, **changes: object) -> ExportConfig:
        """Replace the config with a copy carrying *changes*."""
        if self._busy:
            msg = "export settings cannot change while a build is running"
            raise ExportInProgressError(msg)
        self._config = ExportConfig.model_validate({**self._config.model_dump(), **changes})
        return self._config

    async def run(self, *listeners: ProgressListener) -> ExportResult | None:
        """Build with the current config snapshot.

        *listeners* are subscribed to this build's progress before it starts.
        """
        if self._busy:
            msg = "an export is already running"
            raise ExportInProgressError(msg)

        snapshot = self._config
        progress = ExportProgress()
        for listener in listeners:
            progress.subscribe(listener)
        self.progress = progress
        self._busy = True
        try:
            return await export_archive(
                self.project,
                snapshot,
                self.delivery,
                notify=self.notify,
                progress=progress,
                app_config=self.app_config,
            )
        finally:
            self._busy = False

    def reset(self) -> None:
        """Drop the finished build's progress so the view can start over."""
        if self._busy:
            msg = "cannot reset while a build is running"
            raise ExportInProgressError(msg)
        self.progress = None
