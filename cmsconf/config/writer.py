"""ConfigTree のシリアライズ。"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from cmsconf.config.loader import detect_format
from cmsconf.config.php_array import dumps_php
from cmsconf.config.tree import ConfigTree

logger = logging.getLogger(__name__)


def dumps(tree: ConfigTree, fmt: str = "yaml") -> str:
    """ツリーを文字列に変換する。キー順は保持する。

    Args:
        tree: 変換対象のツリー
        fmt: 'yaml', 'json', 'php' のいずれか

    Returns:
        シリアライズ済みの文字列
    """
    data = tree.to_dict()
    if fmt == "yaml":
        return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    if fmt == "php":
        return dumps_php(data)
    raise ValueError(f"サポートされていないファイル形式: {fmt}")


def dump(tree: ConfigTree, output_path: str | Path) -> None:
    """ツリーをファイルに保存する。形式は拡張子から判定する。"""
    save_path = Path(output_path)
    fmt = detect_format(save_path)
    try:
        save_path.write_text(dumps(tree, fmt), encoding="utf-8")
    except OSError as e:
        logger.error(f"設定ファイルの保存に失敗しました: {e}")
        raise
    logger.info(f"設定ファイルを保存しました: {save_path}")
