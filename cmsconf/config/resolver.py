"""複数の設定レイヤーを統合する簡易リゾルバ。"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cmsconf.config.loader import load_config
from cmsconf.config.tree import ConfigTree

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)


def merge_overrides(base: Mapping[str, Any], *overrides: Mapping[str, Any]) -> ConfigTree:
    """ベース設定に上書きレイヤーを順に深いマージで統合する。

    後のレイヤーほど優先される。Mapping は再帰的に、
    Sequence と Scalar は丸ごと置き換える。
    """
    merged = base if isinstance(base, ConfigTree) else ConfigTree.from_dict(base)
    for layer in overrides:
        merged = merged.merge(layer)
    return merged


def load_layers(paths: Iterable[str | Path]) -> ConfigTree:
    """設定ファイルを順に読み込み、後のファイルで前のファイルを上書きする。

    Args:
        paths: 読み込む設定ファイル（デフォルト → 環境別の順）

    Returns:
        統合済みの設定ツリー

    Raises:
        ValueError: paths が空の場合
    """
    trees = []
    for path in paths:
        trees.append(load_config(path))
        logger.debug(f"設定レイヤーを追加しました: {path}")
    if not trees:
        raise ValueError("設定ファイルが1つも指定されていません")
    return merge_overrides(trees[0], *trees[1:])
