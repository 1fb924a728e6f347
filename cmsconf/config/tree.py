"""不変の階層設定ツリーとパス表現。

ConfigTree はロード時に一度だけ構築され、以降は読み取り専用で共有される。
ノードは Scalar（str/int/bool/float）、Sequence（tuple）、Mapping（ConfigTree）
のいずれかで表現する。
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Union

from cmsconf.config.errors import PathNotFound, TypeMismatch

Scalar = Union[str, int, bool, float]
SCALAR_TYPES = (str, int, bool, float)

PathLike = Union[str, Sequence[str], "ConfigPath"]


class ConfigPath(tuple):
    """ノードを特定するキーセグメントの列。

    ドット区切り文字列（例: 'DB.Connections.Default.host'）またはセグメントの
    シーケンスから生成できる。キー自体にドットを含む場合はシーケンスで指定する。
    """

    __slots__ = ()

    def __new__(cls, segments: PathLike = ()):
        if isinstance(segments, ConfigPath):
            return segments
        if isinstance(segments, str):
            segments = segments.split(".") if segments else ()
        parts = tuple(segments)
        for part in parts:
            if not isinstance(part, str):
                raise TypeError(f"パスのセグメントは文字列である必要があります: {part!r}")
        return super().__new__(cls, parts)

    def child(self, key: str) -> ConfigPath:
        return ConfigPath((*self, key))

    @property
    def dotted(self) -> str:
        return ".".join(self)

    def __str__(self) -> str:
        return self.dotted

    def __repr__(self) -> str:
        return f"ConfigPath({list(self)!r})"


def type_name(value: Any) -> str:
    """検証メッセージ用の型名を返す。"""
    if isinstance(value, ConfigTree):
        return "mapping"
    if isinstance(value, tuple):
        return "sequence"
    return type(value).__name__


def matches_type(value: Any, expected: type) -> bool:
    """値が期待型に一致するか判定する。

    bool は int として扱わない。float は int も受け付ける。
    list/dict はそれぞれ Sequence/Mapping ノードを表す。
    """
    if expected is bool:
        return isinstance(value, bool)
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if expected is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected in (list, tuple):
        return isinstance(value, tuple)
    if expected in (dict, ConfigTree):
        return isinstance(value, ConfigTree)
    return isinstance(value, expected)


def _freeze(value: Any, path: ConfigPath) -> Any:
    if isinstance(value, ConfigTree):
        # 別の位置から移された部分木はパスを付け直す
        return value if value.path == path else ConfigTree(value._data, _path=path)
    if isinstance(value, Mapping):
        return ConfigTree.from_dict(value, _path=path)
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item, path.child(str(i))) for i, item in enumerate(value))
    if isinstance(value, SCALAR_TYPES):
        return value
    raise TypeMismatch(path, expected="scalar, sequence or mapping", actual=type(value).__name__)


def _thaw(value: Any) -> Any:
    if isinstance(value, ConfigTree):
        return value.to_dict()
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


class ConfigTree(Mapping):
    """順序付き・不変の入れ子設定マッピング。

    Mapping プロトコル（tree[key], len, in, 反復）は読み取り専用で提供する。
    変更系の操作は持たず、merge は常に新しいツリーを返す。

    Attributes:
        path: ルートからこのノードまでのパス
    """

    __slots__ = ("_data", "_path")

    def __init__(self, data: Mapping[str, Any] | None = None, *, _path: PathLike = ()):
        self._path = ConfigPath(_path)
        frozen: dict[str, Any] = {}
        for key, value in (data or {}).items():
            if not isinstance(key, str):
                raise TypeMismatch(self._path, expected="str key", actual=f"{type(key).__name__} key {key!r}")
            frozen[key] = _freeze(value, self._path.child(key))
        self._data = frozen

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, _path: PathLike = ()) -> ConfigTree:
        """素の dict/list から不変ツリーを構築する。"""
        return cls(data, _path=_path)

    @property
    def path(self) -> ConfigPath:
        return self._path

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ConfigTree({self.to_dict()!r})"

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, "_data"):
            raise AttributeError("ConfigTree は変更できません")
        object.__setattr__(self, name, value)

    def get(self, path: PathLike) -> Any:  # type: ignore[override]
        """パスが指すノードを返す。

        既定値付きの参照には get_or を使う。

        Args:
            path: ドット区切り文字列またはセグメント列

        Raises:
            PathNotFound: いずれかのセグメントが存在しない場合
            TypeMismatch: 途中のセグメントが Mapping 以外に解決された場合
        """
        return self._resolve(ConfigPath(path))

    def get_or(self, path: PathLike, default: Any) -> Any:
        """パスが存在しない場合に default を返す。型の不一致はそのまま送出する。"""
        try:
            return self._resolve(ConfigPath(path))
        except PathNotFound:
            return default

    def get_scalar(self, path: PathLike, expected_type: type) -> Scalar:
        """スカラー値を型を確認した上で返す。

        Raises:
            PathNotFound: パスが存在しない場合
            TypeMismatch: 値の型が expected_type と一致しない場合
        """
        config_path = ConfigPath(path)
        value = self._resolve(config_path)
        if isinstance(value, (tuple, ConfigTree)) or not matches_type(value, expected_type):
            raise TypeMismatch(config_path, expected=expected_type.__name__, actual=type_name(value))
        return value

    def get_section(self, key: str) -> ConfigTree:
        """トップレベル（または直下）のセクションを返す。"""
        value = self._resolve(ConfigPath((key,)))
        if not isinstance(value, ConfigTree):
            raise TypeMismatch(self._path.child(key), expected="mapping", actual=type_name(value))
        return value

    def _resolve(self, path: ConfigPath) -> Any:
        node: Any = self
        walked = self._path
        for segment in path:
            if not isinstance(node, ConfigTree):
                raise TypeMismatch(walked, expected="mapping", actual=type_name(node))
            walked = walked.child(segment)
            if segment not in node._data:
                raise PathNotFound(walked)
            node = node._data[segment]
        return node

    def merge(self, other: Mapping[str, Any]) -> ConfigTree:
        """other の値で上書きした新しいツリーを返す。

        Mapping 同士は再帰的にマージし、Sequence と Scalar は丸ごと置き換える。
        キー順は自身のキーが先、other で新たに現れたキーが後になる。
        """
        if not isinstance(other, ConfigTree):
            other = ConfigTree.from_dict(other)
        merged: dict[str, Any] = dict(self._data)
        for key, value in other._data.items():
            current = merged.get(key)
            if isinstance(current, ConfigTree) and isinstance(value, ConfigTree):
                merged[key] = current.merge(value)
            else:
                merged[key] = value
        return ConfigTree(merged, _path=self._path)

    def walk(self) -> Iterator[tuple[ConfigPath, Any]]:
        """(パス, 葉ノード) をキー順の深さ優先で列挙する。

        空の Mapping と Sequence は葉として扱う。
        """
        for key, value in self._data.items():
            path = self._path.child(key)
            if isinstance(value, ConfigTree) and len(value) > 0:
                yield from value.walk()
            else:
                yield path, value

    def to_dict(self) -> dict[str, Any]:
        """素の dict/list に変換する（シリアライズ用）。"""
        return {key: _thaw(value) for key, value in self._data.items()}
