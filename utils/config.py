# utils/config.py
"""Configuration loader with YAML backend."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Type, TypeVar, cast

from omegaconf import OmegaConf

from utils.logger import Logger
from utils.settings import paths

DEFAULT_CONFIG_PATH = paths.CONF_DIR / "app.yaml"

S = TypeVar("S")


class ConfigLoader:
    """Strategy interface for config loading."""

    def load(self, filename: str | Path) -> Dict[str, Any]:
        raise NotImplementedError


class YamlConfigLoader(ConfigLoader):
    def load(self, filename: str | Path) -> Dict[str, Any]:
        """Load YAML file and return plain ``dict`` data."""

        cfg = OmegaConf.load(filename)
        return cast(Dict[str, Any], OmegaConf.to_container(cfg, resolve=True))


class Config:
    _data: Dict[str, Any] | None = None
    _loader: ConfigLoader = YamlConfigLoader()
    _logger = Logger.get_logger("utils.config")

    @classmethod
    def load(
        cls, filename: Path | str = DEFAULT_CONFIG_PATH, force_reload: bool = False
    ) -> None:
        """Load configuration from ``filename`` unless already loaded."""

        if cls._data is not None and not force_reload:
            return

        try:
            cls._data = cls._loader.load(filename) or {}
        except Exception as e:
            cls._logger.error(f"Failed to load config {filename}: {e}")
            raise
        cls._logger.info(f"Config loaded from {filename}")
        logging_cfg = cls._data.get("logging")
        if logging_cfg:
            Logger.configure(
                level=logging_cfg.get("level"),
                log_dir=logging_cfg.get("log_dir"),
                json_format=logging_cfg.get("json"),
            )

    @classmethod
    def get(cls, path: str, default: Any | None = None) -> Any:
        """Retrieve value from dotted ``path`` or return ``default``."""
        if cls._data is None:
            cls.load()
        value: Any = cls._data
        for key in path.split("."):
            if not isinstance(value, dict) or value.get(key) is None:
                cls._logger.debug(f"Key {key} not found in path {path}")
                return default
            value = value[key]
        return value

    @classmethod
    def section(cls, name: str, schema: Type[S]) -> S:
        """
        Return section ``name`` as an instance of dataclass ``schema``.

        YAML values override the dataclass defaults; unknown keys and
        wrongly typed values are rejected by OmegaConf.
        """
        base = OmegaConf.structured(schema)
        OmegaConf.set_readonly(base, False)
        override = cls.get(name, {}) or {}
        merged = OmegaConf.merge(base, override)
        return cast(S, OmegaConf.to_object(merged))

    @classmethod
    def set_loader(cls, loader: ConfigLoader) -> None:
        """Replace the config loader strategy (useful for testing)."""

        cls._loader = loader
        cls._data = None
        cls._logger.info(f"Config loader set to {loader.__class__.__name__}")
