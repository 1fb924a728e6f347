"""Configuration management module for CMS installations."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

from cmsconf.config.resolver import load_layers
from cmsconf.config.schema import SchemaValidator, ValidationResult

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from cmsconf.config.schema import ValidationRule
    from cmsconf.config.tree import ConfigTree, PathLike, Scalar

logger = logging.getLogger(__name__)


class ConfigManager:
    """設定ファイル管理クラス

    設定レイヤーを読み込み、統合・検証した上で読み取り専用のツリーを公開する。
    reload は新しいツリーの検証に成功した場合のみ参照を差し替えるため、
    読み手は常に完全に古いツリーか完全に新しいツリーのどちらかを参照する。

    Attributes:
        config_paths: 設定ファイルのパス（後のファイルほど優先）
        validator: 検証に用いる SchemaValidator
    """

    def __init__(
        self,
        config_paths: str | Path | Sequence[str | Path],
        rules: Iterable[ValidationRule] = (),
        strict: bool = False,
        required_sections: Iterable[str] = (),
    ):
        """ConfigManagerを初期化する

        Args:
            config_paths: 設定ファイルのパス、またはその列
            rules: 検証ルール
            strict: ルールに含まれないキーをエラーとするか
            required_sections: 存在必須のトップレベルセクション
        """
        if isinstance(config_paths, (str, Path)):
            config_paths = [config_paths]
        self.config_paths = [Path(p) for p in config_paths]
        self.validator = SchemaValidator(rules, strict=strict, required_sections=required_sections)
        self._tree: ConfigTree | None = None
        self._swap_lock = threading.Lock()

    def _build(self) -> ConfigTree:
        tree = load_layers(self.config_paths)
        result = self.validator.validate(tree)
        if not result.is_valid:
            for error in result.errors:
                logger.error(f"設定エラー: {error}")
        result.raise_for_errors()
        return tree

    def load(self) -> ConfigTree:
        """設定を読み込み、検証して公開する

        Returns:
            公開された設定ツリー

        Raises:
            FileNotFoundError: 設定ファイルが存在しない場合
            ParseError: 設定ファイルの形式が不正な場合
            ConfigValidationError: 検証に失敗した場合
        """
        tree = self._build()
        with self._swap_lock:
            self._tree = tree
        logger.info(f"設定を読み込みました: {', '.join(str(p) for p in self.config_paths)}")
        return tree

    def reload(self) -> ConfigTree:
        """設定を再読み込みし、成功した場合のみ参照を差し替える。

        失敗した場合は以前のツリーを公開したまま例外を送出する。
        """
        try:
            tree = self._build()
        except Exception as e:
            logger.error(f"設定の再読み込みに失敗しました。以前の設定を維持します: {e}")
            raise
        with self._swap_lock:
            self._tree = tree
        logger.info("設定を再読み込みしました。")
        return tree

    @property
    def tree(self) -> ConfigTree:
        """公開中の設定ツリー。未ロードの場合は RuntimeError。"""
        tree = self._tree
        if tree is None:
            raise RuntimeError("設定がまだ読み込まれていません。load() を先に呼び出してください。")
        return tree

    def validate(self) -> ValidationResult:
        """公開中のツリーを再検証する。"""
        return self.validator.validate(self.tree)

    def get(self, path: PathLike) -> Any:
        """設定値を取得する

        ドット記法（例: 'DB.Connections.Default.host'）で階層的な設定値にアクセスできる。
        """
        return self.tree.get(path)

    def get_scalar(self, path: PathLike, expected_type: type) -> Scalar:
        return self.tree.get_scalar(path, expected_type)

    def get_or(self, path: PathLike, default: Any) -> Any:
        return self.tree.get_or(path, default)

    def get_section(self, section: str) -> ConfigTree:
        """設定セクション全体を取得する

        Args:
            section: セクション名（例: 'DB', 'MAIL'）
        """
        return self.tree.get_section(section)
