"""Export phase state machine with subscribe/notify progress reporting."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TypeAlias

from boardforge.models.enums import ExportPhase

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a phase change is not allowed from the current phase."""


@dataclass(frozen=True)
class ProgressState:
    """Snapshot of a build's progress.

    ``current``/``total`` count processed image items; ``compress_percent`` is
    the compressor's own 0-100 signal.  The two are tracked separately.
    """

    phase: ExportPhase = ExportPhase.PREPARING
    current: int = 0
    total: int = 0
    current_file: str = ""
    compress_percent: float = 0.0


ProgressListener: TypeAlias = Callable[[ProgressState], None]

_TERMINAL = frozenset({ExportPhase.COMPLETE, ExportPhase.ERROR})

_ALLOWED: dict[ExportPhase, frozenset[ExportPhase]] = {
    ExportPhase.PREPARING: frozenset({
        ExportPhase.PREPARING, ExportPhase.PROCESSING, ExportPhase.ERROR,
    }),
    ExportPhase.PROCESSING: frozenset({
        ExportPhase.PROCESSING, ExportPhase.COMPRESSING, ExportPhase.ERROR,
    }),
    ExportPhase.COMPRESSING: frozenset({
        ExportPhase.COMPRESSING, ExportPhase.COMPLETE, ExportPhase.ERROR,
    }),
    ExportPhase.COMPLETE: frozenset(),
    ExportPhase.ERROR: frozenset(),
}


class ExportProgress:
    """Finite-state tracker for one export build.

    Usage::

        progress = ExportProgress()
        unsubscribe = progress.subscribe(render)
        progress.transition(ExportPhase.PROCESSING, total=12)
        progress.item_done("001_opening.png")
    """

    def __init__(self) -> None:
        self._state = ProgressState(current_file="Initializing...")
        self._listeners: list[ProgressListener] = []

    @property
    def state(self) -> ProgressState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._state.phase in _TERMINAL

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that removes it again."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def transition(
        self,
        phase: ExportPhase,
        *,
        current: int | None = None,
        total: int | None = None,
        current_file: str | None = None,
        compress_percent: float | None = None,
    ) -> ProgressState:
        """Move to *phase*, applying the given field updates, and notify."""
        previous = self._state
        if phase not in _ALLOWED[previous.phase]:
            msg = f"cannot move export from {previous.phase.value} to {phase.value}"
            raise InvalidTransitionError(msg)

        changes: dict[str, object] = {"phase": phase}
        if current is not None:
            changes["current"] = current
        if total is not None:
            changes["total"] = total
        if current_file is not None:
            changes["current_file"] = current_file
        if compress_percent is not None:
            changes["compress_percent"] = max(previous.compress_percent, compress_percent)

        self._state = replace(previous, **changes)  # type: ignore[arg-type]
        if phase is not previous.phase:
            logger.info("Export phase %s -> %s", previous.phase.value, phase.value)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def item_done(self, filename: str) -> ProgressState:
        """Record one processed item."""
        return self.transition(
            ExportPhase.PROCESSING,
            current=self._state.current + 1,
            current_file=filename,
        )


def display_percent(state: ProgressState, floor: int = 90) -> int:
    """Bar position for *state*, 0-100.

    Processing shows the item ratio.  Compressing holds at *floor* until the
    compressor reports completion, then snaps to 100.
    """
    match state.phase:
        case ExportPhase.PREPARING:
            return 0
        case ExportPhase.PROCESSING | ExportPhase.ERROR:
            if state.total <= 0:
                return 0
            return min(100, round(state.current / state.total * 100))
        case ExportPhase.COMPRESSING:
            return 100 if state.compress_percent >= 100 else floor
        case _:
            return 100
