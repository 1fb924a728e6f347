"""設定ストアの例外定義。"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence


def _format_path(path: Sequence[str] | None) -> str:
    if not path:
        return "<root>"
    return ".".join(path)


class ConfigError(Exception):
    """設定処理で発生する全例外の基底クラス。"""


class ParseError(ConfigError, ValueError):
    """入力の構文が不正な場合に送出される。

    Attributes:
        source: 入力元（ファイルパスなど）
        line: 1始まりの行番号（不明な場合None）
        column: 1始まりの列番号（不明な場合None）
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ):
        self.message = message
        self.source = source
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        location = self.source or "<string>"
        if self.line is not None:
            location += f":{self.line}"
            if self.column is not None:
                location += f":{self.column}"
        return f"{location}: {self.message}"


class DuplicateKeyError(ParseError):
    """同一階層でキーが重複している場合に送出される。"""

    def __init__(
        self,
        key: str,
        parent: Sequence[str] = (),
        source: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ):
        self.key = key
        self.parent = tuple(parent)
        super().__init__(
            f"キー '{key}' が '{_format_path(self.parent)}' で重複しています",
            source=source,
            line=line,
            column=column,
        )


class ValidationError(ConfigError):
    """パス単位の検証エラー。

    Attributes:
        path: 問題のあるパス（セグメントのタプル）
        expected: 期待された型・値の説明
        actual: 実際の型・値の説明
    """

    def __init__(self, path: Sequence[str], expected: Any = None, actual: Any = None, message: str | None = None):
        self.path = tuple(path)
        self.expected = expected
        self.actual = actual
        self.message = message or self._default_message()
        super().__init__(self.message)

    @property
    def dotted_path(self) -> str:
        return _format_path(self.path)

    def _default_message(self) -> str:
        return f"{self.dotted_path}: 期待値 {self.expected!r}, 実際 {self.actual!r}"

    def __str__(self) -> str:
        return self.message


class PathNotFound(ValidationError, KeyError):
    """パスが存在しない場合に送出される。"""

    def _default_message(self) -> str:
        return f"パス '{self.dotted_path}' が存在しません"


class TypeMismatch(ValidationError, TypeError):
    """値の型が期待と異なる場合に送出される。"""

    def _default_message(self) -> str:
        return f"{self.dotted_path} は {self.expected} である必要があります（実際: {self.actual}）"


class ValueNotAllowed(ValidationError, ValueError):
    """値が許可された集合に含まれない場合。"""

    def _default_message(self) -> str:
        allowed = ", ".join(repr(v) for v in self.expected)
        return f"{self.dotted_path} は {allowed} のいずれかである必要があります（実際: {self.actual!r}）"


class UnknownKeyError(ValidationError):
    """strictモードでルールに含まれないキーが見つかった場合。"""

    def _default_message(self) -> str:
        return f"未知のキー '{self.dotted_path}' です"


class ConfigValidationError(ConfigError, ValueError):
    """検証エラーをまとめて送出するための例外。"""

    def __init__(self, errors: Sequence[ValidationError]):
        self.errors = tuple(errors)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(f"設定の検証に失敗しました（{len(self.errors)}件）:\n{lines}")
