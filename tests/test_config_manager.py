"""Unit tests for ConfigManager."""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

import pytest

from cmsconf.config import (
    CMS_REQUIRED_SECTIONS,
    CMS_RULES,
    ConfigManager,
    ConfigValidationError,
    ParseError,
    PathNotFound,
    TypeMismatch,
    rule,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def settings_copy(tmp_path: Path, settings_php_path: Path) -> Path:
    target = tmp_path / "settings.php"
    shutil.copy(settings_php_path, target)
    return target


def test_load_and_query(settings_copy: Path):
    """読み込み後はパスで設定値を取得できる。"""

    manager = ConfigManager(settings_copy, CMS_RULES, required_sections=CMS_REQUIRED_SECTIONS)
    tree = manager.load()

    assert manager.tree is tree
    assert manager.get("DB.Connections.Default.host") == "database"
    assert manager.get_scalar("DB.Connections.Default.port", int) == 3306
    assert manager.get_or("MAIL.transport_smtp_port", 25) == 25
    assert manager.get_section("GFX")["processor_colorspace"] == "RGB"
    assert manager.validate().is_valid


def test_query_errors_propagate(settings_copy: Path):
    manager = ConfigManager(settings_copy)
    manager.load()

    with pytest.raises(PathNotFound):
        manager.get("DB.Connections.Replica")
    with pytest.raises(TypeMismatch):
        manager.get_scalar("SYS.systemMaintainers", int)


def test_tree_before_load_raises(settings_copy: Path):
    with pytest.raises(RuntimeError):
        ConfigManager(settings_copy).tree


def test_load_fails_on_validation_errors(tmp_path: Path, caplog: pytest.LogCaptureFixture):
    """検証エラーは全件まとめて ConfigValidationError になる。"""

    config_path = tmp_path / "settings.yaml"
    config_path.write_text("GFX:\n  processor_colorspace: XYZ\n  processor_enabled: 1\n", encoding="utf-8")
    rules = [rule("GFX.processor_colorspace", str, ["RGB", "CMYK", "GRAY"]), rule("GFX.processor_enabled", bool)]
    manager = ConfigManager(config_path, rules)

    with caplog.at_level(logging.ERROR), pytest.raises(ConfigValidationError) as exc_info:
        manager.load()

    assert len(exc_info.value.errors) == 2
    assert "GFX.processor_colorspace" in caplog.text
    with pytest.raises(RuntimeError):
        manager.tree


def test_layered_paths(tmp_path: Path, settings_copy: Path):
    override = tmp_path / "local.json"
    override.write_text('{"GFX": {"processor_colorspace": "GRAY"}}', encoding="utf-8")

    manager = ConfigManager([settings_copy, override], CMS_RULES)
    manager.load()

    assert manager.get("GFX.processor_colorspace") == "GRAY"
    assert manager.get("GFX.processor") == "GraphicsMagick"


def test_strict_manager_rejects_unknown_keys(tmp_path: Path):
    config_path = tmp_path / "settings.yaml"
    config_path.write_text("SYS:\n  sitename: Demo\n  legacy: true\n", encoding="utf-8")

    manager = ConfigManager(config_path, [rule("SYS.sitename", str)], strict=True)

    with pytest.raises(ConfigValidationError, match="SYS.legacy"):
        manager.load()


class TestReload:
    def test_reload_swaps_tree(self, tmp_path: Path):
        config_path = tmp_path / "settings.yaml"
        config_path.write_text("SYS:\n  sitename: Old\n", encoding="utf-8")
        manager = ConfigManager(config_path, [rule("SYS.sitename", str, required=True)])
        old_tree = manager.load()

        config_path.write_text("SYS:\n  sitename: New\n", encoding="utf-8")
        new_tree = manager.reload()

        assert manager.tree is new_tree
        assert manager.get("SYS.sitename") == "New"
        assert old_tree.get("SYS.sitename") == "Old"

    def test_failed_reload_keeps_previous_tree(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        config_path = tmp_path / "settings.yaml"
        config_path.write_text("SYS:\n  sitename: Old\n", encoding="utf-8")
        manager = ConfigManager(config_path, [rule("SYS.sitename", str, required=True)])
        old_tree = manager.load()

        config_path.write_text("SYS:\n  sitename: [broken\n", encoding="utf-8")
        with caplog.at_level(logging.ERROR), pytest.raises(ParseError):
            manager.reload()

        assert manager.tree is old_tree
        assert "再読み込みに失敗" in caplog.text

    def test_invalid_reload_keeps_previous_tree(self, tmp_path: Path):
        config_path = tmp_path / "settings.yaml"
        config_path.write_text("SYS:\n  sitename: Old\n", encoding="utf-8")
        manager = ConfigManager(config_path, [rule("SYS.sitename", str, required=True)])
        old_tree = manager.load()

        config_path.write_text("SYS:\n  other: 1\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError):
            manager.reload()

        assert manager.tree is old_tree
