"""設定ツリーのスキーマ検証。

検証は全件走査であり、最初のエラーで停止せずに全ての違反を収集する。
ルールのパスには任意の1キーにマッチする '*' を使用できる。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from cmsconf.config.errors import (
    ConfigValidationError,
    PathNotFound,
    TypeMismatch,
    UnknownKeyError,
    ValidationError,
    ValueNotAllowed,
)
from cmsconf.config.tree import SCALAR_TYPES, ConfigPath, ConfigTree, PathLike, matches_type, type_name

logger = logging.getLogger(__name__)

WILDCARD = "*"

_TYPE_NAMES = {
    bool: "bool",
    int: "int",
    float: "float",
    str: "str",
    list: "sequence",
    tuple: "sequence",
    dict: "mapping",
    ConfigTree: "mapping",
}


@dataclass(frozen=True)
class ValidationRule:
    """パスパターンと期待型・許可値の組

    Attributes:
        path: パスパターン（'*' は任意の1キー）
        expected_type: bool, int, float, str, list, dict のいずれか、またはそのタプル
        allowed_values: 許可される値の集合（スカラー型のみ）
        required: パスが存在しない場合にエラーとするか
    """

    path: ConfigPath
    expected_type: type | tuple[type, ...]
    allowed_values: tuple[Any, ...] | None = None
    required: bool = False

    def __post_init__(self):
        object.__setattr__(self, "path", ConfigPath(self.path))
        if not self.path:
            raise ValueError("ルールのパスは空にできません")
        if isinstance(self.expected_type, (tuple, list)):
            object.__setattr__(self, "expected_type", tuple(self.expected_type))
        for expected in self.types:
            if expected not in _TYPE_NAMES:
                raise ValueError(f"サポートされていない型です: {expected!r}")
        if not self.types:
            raise ValueError("期待型を1つ以上指定してください")
        if self.allowed_values is not None:
            if any(t not in SCALAR_TYPES for t in self.types):
                raise ValueError("allowed_values はスカラー型のルールにのみ指定できます")
            object.__setattr__(self, "allowed_values", tuple(self.allowed_values))

    @property
    def types(self) -> tuple[type, ...]:
        if isinstance(self.expected_type, tuple):
            return self.expected_type
        return (self.expected_type,)

    @property
    def type_label(self) -> str:
        return " | ".join(_TYPE_NAMES[t] for t in self.types)

    def accepts_type(self, value: Any) -> bool:
        return any(matches_type(value, t) for t in self.types)

    def covers(self, path: Sequence[str]) -> bool:
        """path がこのルールの対象（またはその配下）であるか。"""
        if len(path) < len(self.path):
            return False
        return _pattern_matches(self.path, path[: len(self.path)])

    def leads_to(self, path: Sequence[str]) -> bool:
        """path がこのルールのパスの途中の階層であるか。"""
        if len(path) >= len(self.path):
            return False
        return _pattern_matches(self.path[: len(path)], path)

    def allows(self, value: Any) -> bool:
        if self.allowed_values is None:
            return True
        # True == 1 のような型をまたぐ一致は認めない
        return any(type(v) is type(value) and v == value for v in self.allowed_values)


def _pattern_matches(pattern: Sequence[str], path: Sequence[str]) -> bool:
    return len(pattern) == len(path) and all(p == WILDCARD or p == s for p, s in zip(pattern, path))


def rule(
    path: PathLike,
    expected_type: type | tuple[type, ...],
    allowed_values: Iterable[Any] | None = None,
    required: bool = False,
) -> ValidationRule:
    """ValidationRule の簡易コンストラクタ。"""
    return ValidationRule(
        ConfigPath(path),
        expected_type,
        tuple(allowed_values) if allowed_values is not None else None,
        required,
    )


@dataclass(frozen=True)
class ValidationResult:
    """検証結果。errors が空なら Valid、そうでなければ Invalid。"""

    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @classmethod
    def valid(cls) -> ValidationResult:
        return cls(())

    @classmethod
    def invalid(cls, errors: Iterable[ValidationError]) -> ValidationResult:
        errors = tuple(errors)
        if not errors:
            raise ValueError("Invalid にはエラーが1件以上必要です")
        return cls(errors)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.is_valid

    def raise_for_errors(self) -> None:
        """Invalid の場合に ConfigValidationError を送出する。"""
        if self.errors:
            raise ConfigValidationError(self.errors)


class SchemaValidator:
    """ルール集合に基づいて ConfigTree を検証する

    Attributes:
        rules: 検証ルール
        strict: ルールに含まれないキーを UnknownKeyError とするか
        required_sections: 存在必須のトップレベルセクション
    """

    def __init__(
        self,
        rules: Iterable[ValidationRule] = (),
        strict: bool = False,
        required_sections: Iterable[str] = (),
    ):
        self.rules = tuple(rules)
        self.strict = strict
        self.required_sections = tuple(required_sections)

    def validate(self, tree: ConfigTree) -> ValidationResult:
        """ツリーを検証し、全ての違反を収集して返す。"""
        errors: list[ValidationError] = []

        for section in self.required_sections:
            if section not in tree:
                errors.append(PathNotFound((section,)))
            elif not isinstance(tree[section], ConfigTree):
                errors.append(TypeMismatch((section,), expected="mapping", actual=type_name(tree[section])))

        seen: set[tuple[type, ConfigPath]] = set()
        for validation_rule in self.rules:
            structural, leaf = self._check_rule(tree, validation_rule)
            # 同じ中間ノードに対する複数ルールの報告は1件にまとめる
            for error in structural:
                if (type(error), error.path) in seen:
                    continue
                seen.add((type(error), error.path))
                errors.append(error)
            errors.extend(leaf)

        if self.strict:
            errors.extend(self._find_unknown_keys(tree, ConfigPath()))

        if errors:
            logger.debug(f"設定の検証で {len(errors)} 件のエラーが見つかりました")
            return ValidationResult.invalid(errors)
        return ValidationResult.valid()

    def _check_rule(
        self, tree: ConfigTree, validation_rule: ValidationRule
    ) -> tuple[list[ValidationError], list[ValidationError]]:
        """ルールを1件適用し、(経路上のエラー, 葉の値のエラー) を返す。"""
        errors: list[ValidationError] = []
        # (現在のパス, ノード) の組を展開していく
        frontier: list[tuple[ConfigPath, Any]] = [(ConfigPath(), tree)]
        for segment in validation_rule.path:
            next_frontier: list[tuple[ConfigPath, Any]] = []
            for path, node in frontier:
                if not isinstance(node, ConfigTree):
                    errors.append(TypeMismatch(path, expected="mapping", actual=type_name(node)))
                    continue
                if segment == WILDCARD:
                    next_frontier.extend((path.child(key), node[key]) for key in node)
                elif segment in node:
                    next_frontier.append((path.child(segment), node[segment]))
                elif validation_rule.required:
                    errors.append(PathNotFound(path.child(segment)))
            frontier = next_frontier

        leaf_errors: list[ValidationError] = []
        for path, value in frontier:
            if not validation_rule.accepts_type(value):
                leaf_errors.append(TypeMismatch(path, expected=validation_rule.type_label, actual=type_name(value)))
            elif not validation_rule.allows(value):
                leaf_errors.append(ValueNotAllowed(path, expected=validation_rule.allowed_values, actual=value))
        return errors, leaf_errors

    def _find_unknown_keys(self, node: ConfigTree, path: ConfigPath) -> list[ValidationError]:
        errors: list[ValidationError] = []
        for key, value in node.items():
            child = path.child(key)
            if any(r.covers(child) for r in self.rules):
                continue
            is_section = len(child) == 1 and key in self.required_sections
            if is_section or any(r.leads_to(child) for r in self.rules):
                if isinstance(value, ConfigTree):
                    errors.extend(self._find_unknown_keys(value, child))
                continue
            errors.append(UnknownKeyError(child))
        return errors


def validate(
    tree: ConfigTree,
    rules: Iterable[ValidationRule] = (),
    strict: bool = False,
    required_sections: Iterable[str] = (),
) -> ValidationResult:
    """SchemaValidator の簡易呼び出し。"""
    return SchemaValidator(rules, strict=strict, required_sections=required_sections).validate(tree)
