from pathlib import Path

import pytest
from omegaconf.errors import ValidationError

from utils.config import Config, ConfigLoader, YamlConfigLoader
from utils.settings import CameraCfg, WorkspaceCfg


class DictLoader(ConfigLoader):
    def __init__(self, data):
        self.data = data

    def load(self, filename):
        return self.data


@pytest.fixture(autouse=True)
def restore_loader():
    yield
    Config.set_loader(YamlConfigLoader())


def test_section_overrides_defaults():
    Config.set_loader(DictLoader({"camera": {"serial": "160123", "capture_timeout_ms": 900}}))
    cfg = Config.section("camera", CameraCfg)
    assert isinstance(cfg, CameraCfg)
    assert cfg.serial == "160123"
    assert cfg.capture_timeout_ms == 900
    assert cfg.connect_monocular is True


def test_missing_section_uses_defaults():
    Config.set_loader(DictLoader({}))
    assert Config.section("workspace", WorkspaceCfg) == WorkspaceCfg()
    assert Config.get("workspace.samples", 7) == 7


def test_wrong_type_is_rejected():
    Config.set_loader(DictLoader({"camera": {"capture_timeout_ms": "soon"}}))
    with pytest.raises(ValidationError):
        Config.section("camera", CameraCfg)


def test_yaml_file(tmp_path: Path):
    path = tmp_path / "app.yaml"
    path.write_text("workspace:\n  frame_id: table\n  samples: 3\n")
    Config.load(path, force_reload=True)
    assert Config.get("workspace.frame_id") == "table"
    assert Config.section("workspace", WorkspaceCfg).samples == 3
