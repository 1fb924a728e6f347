"""設定ファイルの読み込み専用モジュール。

YAML/JSON/settings.php を解析し、不変の ConfigTree を構築する。
部分的な回復は行わず、不正な入力はロード全体を失敗させる。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from cmsconf.config.errors import DuplicateKeyError, ParseError, TypeMismatch
from cmsconf.config.php_array import loads_php
from cmsconf.config.tree import ConfigTree

logger = logging.getLogger(__name__)

FORMAT_BY_SUFFIX = {
    ".yaml": "yaml",
    ".yml": "yaml",
    ".json": "json",
    ".php": "php",
}


class _UniqueKeySafeLoader(yaml.SafeLoader):
    """同一マッピング内のキー重複を検出する SafeLoader。"""


def _construct_unique_mapping(loader: _UniqueKeySafeLoader, node: yaml.MappingNode, deep: bool = False) -> dict:
    loader.flatten_mapping(node)
    seen: set[Any] = set()
    for key_node, _ in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if not isinstance(key, (str, int, float, bool)):
            # ハッシュ不可能なキーは construct_mapping 側でエラーになる
            continue
        if key in seen:
            mark = key_node.start_mark
            raise DuplicateKeyError(str(key), line=mark.line + 1, column=mark.column + 1)
        seen.add(key)
    return loader.construct_mapping(node, deep=deep)


_UniqueKeySafeLoader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_unique_mapping)


def _reject_duplicate_pairs(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise DuplicateKeyError(key)
        result[key] = value
    return result


def _parse_yaml(text: str, source: str | None) -> Any:
    try:
        return yaml.load(text, Loader=_UniqueKeySafeLoader)
    except DuplicateKeyError as e:
        e.source = source
        raise
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark or e.context_mark
        line = mark.line + 1 if mark is not None else None
        column = mark.column + 1 if mark is not None else None
        raise ParseError(f"YAML解析エラー: {e.problem or e}", source=source, line=line, column=column) from e
    except yaml.YAMLError as e:
        raise ParseError(f"YAML解析エラー: {e}", source=source) from e


def _parse_json(text: str, source: str | None) -> Any:
    try:
        return json.loads(text, object_pairs_hook=_reject_duplicate_pairs)
    except DuplicateKeyError as e:
        e.source = source
        raise
    except json.JSONDecodeError as e:
        raise ParseError(f"JSON解析エラー: {e.msg}", source=source, line=e.lineno, column=e.colno) from e


def parse_text(text: str, fmt: str, source: str | None = None) -> dict[str, Any]:
    """文字列を指定形式で解析し、素の dict を返す。

    Raises:
        ParseError: 構文エラー、未対応の形式、トップレベルが辞書でない場合
        DuplicateKeyError: 同一階層でキーが重複している場合
    """
    if fmt == "yaml":
        data = _parse_yaml(text, source)
        if data is None:
            logger.warning(f"設定 '{source or '<string>'}' が空です。空のツリーとして扱います。")
            return {}
    elif fmt == "json":
        data = _parse_json(text, source)
    elif fmt == "php":
        data = loads_php(text, source=source)
    else:
        raise ParseError(f"サポートされない設定形式です: {fmt}", source=source)

    if not isinstance(data, dict):
        raise ParseError(f"{fmt.upper()}設定は辞書形式である必要があります", source=source)
    return data


def build_tree(data: dict[str, Any], source: str | None = None) -> ConfigTree:
    """素の dict から ConfigTree を構築する。表現できない値は ParseError にする。"""
    try:
        return ConfigTree.from_dict(data)
    except TypeMismatch as e:
        raise ParseError(
            f"'{e.dotted_path}' の値はサポートされていません（{e.actual}）",
            source=source,
        ) from e


def loads(text: str, fmt: str = "yaml", source: str | None = None) -> ConfigTree:
    """文字列から ConfigTree を構築する。"""
    return build_tree(parse_text(text, fmt, source=source), source=source)


def detect_format(path: str | Path) -> str:
    """拡張子から設定形式を判定する。"""
    suffix = Path(path).suffix.lower()
    fmt = FORMAT_BY_SUFFIX.get(suffix)
    if fmt is None:
        raise ParseError(f"サポートされない設定形式です: {suffix}", source=str(path))
    return fmt


def decode_source(raw: bytes, source: str | None = None) -> str:
    """UTF-8 として復号する。不正なバイト列は位置付きの ParseError にする。"""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        line_start = raw.rfind(b"\n", 0, e.start) + 1
        raise ParseError(
            f"UTF-8として不正なバイト列です（{e.start}バイト目: 0x{raw[e.start]:02x}）",
            source=source,
            line=raw.count(b"\n", 0, e.start) + 1,
            column=e.start - line_start + 1,
        ) from e


def load_config_file(path: str | Path) -> dict[str, Any]:
    """YAML/JSON/PHP 設定を辞書として読み込む。"""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"設定ファイルが見つかりません: {config_path}")

    fmt = detect_format(config_path)
    text = decode_source(config_path.read_bytes(), source=str(config_path))
    data = parse_text(text, fmt, source=str(config_path))
    logger.info(f"設定ファイル '{config_path}' を読み込みました。")
    return data


class ConfigLoader:
    """設定ファイルを読み込み ConfigTree を生成する

    Attributes:
        config_path: 設定ファイルのパス
    """

    def __init__(self, config_path: str | Path):
        self.config_path = Path(config_path)

    def load(self) -> ConfigTree:
        """設定ファイルを読み込む

        Returns:
            読み込まれた設定ツリー

        Raises:
            FileNotFoundError: 設定ファイルが存在しない場合
            ParseError: 設定ファイルの形式が不正な場合
            DuplicateKeyError: 同一階層でキーが重複している場合
        """
        data = load_config_file(self.config_path)
        return build_tree(data, source=str(self.config_path))


def load_config(config_path: str | Path) -> ConfigTree:
    """ConfigLoader の簡易呼び出し。"""
    return ConfigLoader(config_path).load()
