"""Executor backed by the Ensenso NxLib Python binding."""

from __future__ import annotations

import json
import numbers
from typing import Any, Dict, Mapping, Sequence

import ensenso_nxlib.api as api
import numpy as np
from ensenso_nxlib import NxLibCommand, NxLibException, NxLibItem

from utils.error_tracker import DataUnavailable, DeviceCommandError, PropertyMissing
from utils.logger import Logger, LoggerType

from .executor import CommandExecutor, Key

ITM_ERROR_SYMBOL = "ErrorSymbol"
ITM_ERROR_TEXT = "ErrorText"


class NxLibExecutor(CommandExecutor):
    """Translate executor calls into NxLib tree items and commands."""

    def __init__(self, logger: LoggerType | None = None) -> None:
        self.logger = logger or Logger.get_logger("depthcam.nxlib")

    @staticmethod
    def _item(path: Sequence[Key]) -> NxLibItem:
        item = NxLibItem()
        for key in path:
            item = item[key]
        return item

    def initialize(self) -> None:
        api.initialize()
        self.logger.info("NxLib initialized")

    def finalize(self) -> None:
        api.finalize()
        self.logger.info("NxLib finalized")

    def execute(
        self, command: str, parameters: Mapping[str, Any] | None = None
    ) -> Dict[str, Any]:
        cmd = NxLibCommand(command)
        if parameters:
            cmd.parameters().set_json(json.dumps(parameters), False)
        try:
            cmd.execute()
        except NxLibException as exc:
            result = cmd.result()
            code = str(exc.get_error_code())
            message = exc.get_error_text()
            if result[ITM_ERROR_SYMBOL].exists():
                code = result[ITM_ERROR_SYMBOL].as_string()
                message = result[ITM_ERROR_TEXT].as_string()
            raise DeviceCommandError(code, message) from exc
        return json.loads(cmd.result().as_json())

    def get(self, path: Sequence[Key]) -> Any:
        item = self._item(path)
        if not item.exists():
            raise PropertyMissing(path)
        return json.loads(item.as_json())

    def set(self, path: Sequence[Key], value: Any) -> None:
        item = self._item(path)
        if isinstance(value, (Mapping, list, tuple)):
            item.set_json(json.dumps(value), True)
        elif isinstance(value, bool):
            item.set_bool(value)
        elif isinstance(value, numbers.Integral):
            item.set_int(int(value))
        elif isinstance(value, numbers.Real):
            item.set_double(float(value))
        else:
            item.set_string(str(value))

    def exists(self, path: Sequence[Key]) -> bool:
        return bool(self._item(path).exists())

    def erase(self, path: Sequence[Key]) -> None:
        self._item(path).erase()

    def get_binary(self, path: Sequence[Key]) -> np.ndarray:
        item = self._item(path)
        try:
            return np.asarray(item.get_binary_data())
        except NxLibException as exc:
            raise DataUnavailable(
                f"No binary data at {'/'.join(str(p) for p in path)}: "
                f"{exc.get_error_text()}"
            ) from exc
