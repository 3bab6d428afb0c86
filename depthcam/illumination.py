"""Capture illumination and FlexView settings with scoped save/restore."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from utils.error_tracker import PropertyMissing
from utils.logger import Logger, LoggerType

from .executor import (
    ITM_CAPTURE,
    ITM_FLEX_VIEW,
    ITM_FRONT_LIGHT,
    ITM_PARAMETERS,
    ITM_PROJECTOR,
    CommandExecutor,
    TreePath,
)
from .registry import DeviceHandle

FLEX_VIEW_DISABLED = -1


class CaptureSettings:
    """Typed accessors for the ``Parameters/Capture`` node of one camera."""

    def __init__(
        self,
        executor: CommandExecutor,
        handle: DeviceHandle,
        logger: LoggerType | None = None,
    ) -> None:
        self.executor = executor
        self.handle = handle
        self.logger = logger or Logger.get_logger("depthcam.illumination")

    def _path(self, item: str) -> TreePath:
        return self.handle.path + (ITM_PARAMETERS, ITM_CAPTURE, item)

    def flex_view(self) -> int:
        """
        Number of FlexView shots, or ``FLEX_VIEW_DISABLED``.

        With FlexView off the node is either missing or holds ``false``.
        """
        try:
            value = self.executor.get(self._path(ITM_FLEX_VIEW))
        except PropertyMissing:
            return FLEX_VIEW_DISABLED
        if isinstance(value, bool) or not isinstance(value, int):
            return FLEX_VIEW_DISABLED
        return value

    def set_flex_view(self, value: int) -> None:
        self.executor.set(self._path(ITM_FLEX_VIEW), int(value))

    def set_front_light(self, state: bool) -> None:
        self.executor.set(self._path(ITM_FRONT_LIGHT), bool(state))

    def set_projector(self, state: bool) -> None:
        self.executor.set(self._path(ITM_PROJECTOR), bool(state))

    @contextmanager
    def flex_view_suspended(self) -> Iterator[int]:
        """Turn FlexView off for the block and restore the previous level."""
        saved = self.flex_view()
        if saved > 0:
            self.logger.debug(f"Suspending FlexView ({saved})")
            self.set_flex_view(0)
        try:
            yield saved
        finally:
            if saved > 0:
                self.set_flex_view(saved)

    @contextmanager
    def front_light_illumination(self) -> Iterator[None]:
        """Projector off and front light on for the block, then back."""
        self.set_projector(False)
        self.set_front_light(True)
        try:
            yield
        finally:
            self.set_front_light(False)
            self.set_projector(True)
