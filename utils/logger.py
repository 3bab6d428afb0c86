"""Project logger built on loguru, plus a tqdm progress helper."""

from __future__ import annotations

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Iterable, TypeVar, cast

from loguru import logger as _logger
from loguru._logger import Logger as LoguruLogger
from tqdm.auto import tqdm

from utils.settings import logging as LOGCFG

LoggerType = LoguruLogger
T = TypeVar("T")

_is_configured = False
_log_dir = LOGCFG.log_dir


class Logger:
    """Single entry point for loguru sinks shared by every package."""

    @staticmethod
    def _configure(level: str, json_format: bool) -> None:
        """Replace all sinks with a console sink and a timestamped file sink."""
        global _is_configured
        _logger.remove()
        os.makedirs(_log_dir, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        suffix = ".log.json" if json_format else ".log"
        log_file = Path(_log_dir) / f"{stamp}{suffix}"
        _logger.add(sys.stdout, level=level, format=LOGCFG.log_format)
        _logger.add(
            log_file,
            level=level,
            serialize=json_format,
            format=LOGCFG.log_file_format,
        )
        _is_configured = True

    @staticmethod
    def get_logger(
        name: str, level: str | None = None, json_format: bool | None = None
    ) -> LoguruLogger:
        """
        Return a loguru logger bound to ``name``.
        Sinks are created lazily on the first call using the global config.
        """
        if not _is_configured:
            Logger._configure(
                level or LOGCFG.level,
                json_format if json_format is not None else LOGCFG.json,
            )
        return _logger.bind(module=name)

    @staticmethod
    def progress(
        iterable: Iterable[T],
        desc: str | None = None,
        total: int | None = None,
    ) -> Iterable[T]:
        """Wrap ``iterable`` in a tqdm bar using the project bar format."""
        return cast(
            Iterable[T],
            tqdm(
                iterable,
                desc=desc,
                total=total,
                leave=False,
                bar_format=LOGCFG.progress_bar_format,
            ),
        )

    @staticmethod
    def configure(
        level: str | None = None,
        log_dir: str | Path | None = None,
        json_format: bool | None = None,
    ) -> None:
        """Reconfigure sinks, e.g. after loading ``conf/app.yaml``."""
        global _log_dir
        _log_dir = Path(log_dir) if log_dir is not None else LOGCFG.log_dir
        Logger._configure(
            level or LOGCFG.level,
            json_format if json_format is not None else LOGCFG.json,
        )
