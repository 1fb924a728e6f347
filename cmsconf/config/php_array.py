"""CMS の settings.php（PHP 配列リテラル）形式の読み書き。

対応するのは静的な設定ファイルに現れる部分集合のみ:
``<?php return [ ... ];`` 形式、文字列・整数・浮動小数・真偽値、
``key => value`` 形式の連想配列とキーなしのリスト、コメント。
変数展開や定数、関数呼び出しは扱わない。
"""

from __future__ import annotations

import re
from typing import Any

from cmsconf.config.errors import DuplicateKeyError, ParseError

_TOKEN_PATTERNS = [
    ("WS", r"\s+"),
    ("COMMENT", r"//[^\n]*|#[^\n]*|/\*.*?\*/"),
    ("OPEN_TAG", r"<\?php\b"),
    ("CLOSE_TAG", r"\?>"),
    ("ARROW", r"=>"),
    ("FLOAT", r"-?(?:\d+\.\d*|\.\d+)(?:[eE][+-]?\d+)?|-?\d+[eE][+-]?\d+"),
    ("INT", r"-?\d+"),
    ("SQ_STRING", r"'(?:[^'\\]|\\.)*'"),
    ("DQ_STRING", r'"(?:[^"\\]|\\.)*"'),
    ("NAME", r"[A-Za-z_][A-Za-z0-9_]*"),
    ("PUNCT", r"[\[\](),;]"),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_PATTERNS), re.DOTALL)

_DQ_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "v": "\v",
    "f": "\f",
    "e": "\x1b",
    "\\": "\\",
    '"': '"',
    "$": "$",
}

_DQ_ESCAPE_RE = re.compile(r"\\(?:x([0-9A-Fa-f]{1,2})|([0-7]{1,3})|u\{([0-9A-Fa-f]+)\}|(.))", re.DOTALL)


class _Token:
    __slots__ = ("kind", "text", "line", "column")

    def __init__(self, kind: str, text: str, line: int, column: int):
        self.kind = kind
        self.text = text
        self.line = line
        self.column = column


def _unquote_single(body: str) -> str:
    # 単一引用符では \' と \\ のみがエスケープ
    return re.sub(r"\\([\\'])", r"\1", body)


def _unquote_double(body: str) -> str:
    """二重引用符文字列のエスケープを展開する。

    PHP の文字列はバイト列なので、\\xHH と 8進数表記は1バイトとして積み上げ、
    最後に UTF-8 として復号する。未知のエスケープはバックスラッシュごと残す。

    Raises:
        ValueError: 8進数が1バイトを超える場合、コードポイントが不正な場合、
            復号結果が UTF-8 として不正な場合
    """
    buffer = bytearray()
    index = 0
    for match in _DQ_ESCAPE_RE.finditer(body):
        buffer += body[index : match.start()].encode("utf-8")
        index = match.end()
        hex_byte, octal, codepoint, char = match.groups()
        if hex_byte is not None:
            buffer.append(int(hex_byte, 16))
        elif octal is not None:
            value = int(octal, 8)
            if value > 0xFF:
                raise ValueError(f"8進数エスケープ \\{octal} は1バイトの範囲を超えています")
            buffer.append(value)
        elif codepoint is not None:
            value = int(codepoint, 16)
            if value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
                raise ValueError(f"不正なコードポイントです: \\u{{{codepoint}}}")
            buffer += chr(value).encode("utf-8")
        else:
            buffer += _DQ_ESCAPES.get(char, "\\" + char).encode("utf-8")
    buffer += body[index:].encode("utf-8")
    try:
        return buffer.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"エスケープ展開後の文字列が UTF-8 として不正です（{e.start}バイト目）") from e


class PhpArrayParser:
    """PHP 配列リテラルを dict/list に変換するパーサ

    Attributes:
        text: 入力テキスト
        source: エラーメッセージ用の入力元名
    """

    def __init__(self, text: str, source: str | None = None):
        self.text = text
        self.source = source
        self.tokens = self._tokenize()
        self.pos = 0

    def _tokenize(self) -> list[_Token]:
        tokens: list[_Token] = []
        index = 0
        line = 1
        line_start = 0
        while index < len(self.text):
            match = _TOKEN_RE.match(self.text, index)
            if match is None:
                raise ParseError(
                    f"解釈できない文字 {self.text[index]!r}",
                    source=self.source,
                    line=line,
                    column=index - line_start + 1,
                )
            kind = match.lastgroup
            text = match.group()
            if kind not in ("WS", "COMMENT"):
                tokens.append(_Token(kind, text, line, index - line_start + 1))
            newlines = text.count("\n")
            if newlines:
                line += newlines
                line_start = index + text.rindex("\n") + 1
            index = match.end()
        return tokens

    def _error(self, message: str, token: _Token | None = None) -> ParseError:
        if token is None:
            return ParseError(message, source=self.source)
        return ParseError(message, source=self.source, line=token.line, column=token.column)

    def _peek(self) -> _Token | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self, expected: str | None = None) -> _Token:
        token = self._peek()
        if token is None:
            raise self._error(f"入力が途中で終了しました（期待: {expected or '値'}）")
        if expected is not None and token.text.lower() != expected:
            raise self._error(f"'{expected}' が必要ですが '{token.text}' がありました", token)
        self.pos += 1
        return token

    def _accept(self, text: str) -> bool:
        token = self._peek()
        if token is not None and token.text == text:
            self.pos += 1
            return True
        return False

    def parse(self) -> dict[str, Any]:
        """``<?php return [...];`` を解析し、トップレベルの dict を返す。"""
        token = self._peek()
        if token is not None and token.kind == "OPEN_TAG":
            self.pos += 1
        return_token = self._next("return")
        if return_token.kind != "NAME" or return_token.text.lower() != "return":
            raise self._error("'return' が必要です", return_token)
        start = self._peek()
        value = self._parse_value(())
        if not isinstance(value, dict):
            raise self._error("トップレベルは連想配列である必要があります", start)
        self._next(";")
        token = self._peek()
        if token is not None and token.kind == "CLOSE_TAG":
            self.pos += 1
        token = self._peek()
        if token is not None:
            raise self._error(f"余分な入力 '{token.text}' があります", token)
        return value

    def _parse_value(self, path: tuple[str, ...]) -> Any:
        token = self._next()
        if token.text == "[":
            return self._parse_array(path, closing="]", opener=token)
        if token.kind == "NAME":
            name = token.text.lower()
            if name == "array":
                self._next("(")
                return self._parse_array(path, closing=")", opener=token)
            if name == "true":
                return True
            if name == "false":
                return False
            if name == "null":
                raise self._error("null 値はサポートされていません", token)
            raise self._error(f"定数 '{token.text}' はサポートされていません", token)
        if token.kind == "INT":
            return int(token.text)
        if token.kind == "FLOAT":
            return float(token.text)
        if token.kind == "SQ_STRING":
            return _unquote_single(token.text[1:-1])
        if token.kind == "DQ_STRING":
            body = token.text[1:-1]
            if re.search(r"(?<!\\)\$[A-Za-z_{]", body):
                raise self._error("文字列中の変数展開はサポートされていません", token)
            return self._unquote_token(token)
        raise self._error(f"値が必要ですが '{token.text}' がありました", token)

    def _unquote_token(self, token: _Token) -> str:
        try:
            return _unquote_double(token.text[1:-1])
        except ValueError as e:
            raise self._error(str(e), token) from e

    def _parse_array(self, path: tuple[str, ...], closing: str, opener: _Token) -> dict[str, Any] | list[Any]:
        mapping: dict[str, Any] = {}
        items: list[Any] = []
        keyed: bool | None = None

        while not self._accept(closing):
            key_token = self._peek()
            if key_token is None:
                raise self._error(f"'{closing}' が閉じられていません", opener)

            if self._is_keyed_entry():
                if keyed is False:
                    raise self._error("キー付き要素とキーなし要素を混在させることはできません", key_token)
                keyed = True
                key = self._parse_key()
                self._next("=>")
                if key in mapping:
                    raise DuplicateKeyError(
                        key, parent=path, source=self.source, line=key_token.line, column=key_token.column
                    )
                mapping[key] = self._parse_value((*path, key))
            else:
                if keyed is True:
                    raise self._error("キー付き要素とキーなし要素を混在させることはできません", key_token)
                keyed = False
                items.append(self._parse_value((*path, str(len(items)))))

            if not self._accept(","):
                self._next(closing)
                break

        # 空配列は空の連想配列として扱う
        return items if keyed is False else mapping

    def _is_keyed_entry(self) -> bool:
        token = self._peek()
        following = self.tokens[self.pos + 1] if self.pos + 1 < len(self.tokens) else None
        return (
            token is not None
            and token.kind in ("SQ_STRING", "DQ_STRING", "INT", "FLOAT", "NAME")
            and following is not None
            and following.kind == "ARROW"
        )

    def _parse_key(self) -> str:
        token = self._next()
        if token.kind == "SQ_STRING":
            return _unquote_single(token.text[1:-1])
        if token.kind == "DQ_STRING":
            return self._unquote_token(token)
        raise self._error(f"キーは文字列である必要があります（実際: {token.text}）", token)


def loads_php(text: str, source: str | None = None) -> dict[str, Any]:
    """settings.php 形式の文字列を dict に変換する。"""
    return PhpArrayParser(text, source=source).parse()


def _quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        text = repr(value)
        if text in ("inf", "-inf", "nan"):
            raise ValueError(f"PHP 形式で表現できない値です: {text}")
        return text
    if isinstance(value, str):
        return _quote(value)
    raise TypeError(f"PHP 形式で表現できない型です: {type(value).__name__}")


def _format_value(value: Any, indent: int) -> list[str]:
    pad = "    " * (indent + 1)
    if isinstance(value, dict):
        if not value:
            return ["[]"]
        lines = ["["]
        for key, item in value.items():
            rendered = _format_value(item, indent + 1)
            lines.append(f"{pad}{_quote(key)} => {rendered[0]}")
            lines.extend(rendered[1:])
            lines[-1] += ","
        lines.append("    " * indent + "]")
        return lines
    if isinstance(value, list):
        if not value:
            return ["[]"]
        lines = ["["]
        for item in value:
            rendered = _format_value(item, indent + 1)
            lines.append(f"{pad}{rendered[0]}")
            lines.extend(rendered[1:])
            lines[-1] += ","
        lines.append("    " * indent + "]")
        return lines
    return [_format_scalar(value)]


def dumps_php(data: dict[str, Any]) -> str:
    """dict を settings.php 形式の文字列に変換する。"""
    body = _format_value(data, 0)
    return "<?php\nreturn " + "\n".join(body) + ";\n"
