"""Test cases for the settings.php parser and writer."""

from __future__ import annotations

import pytest

from cmsconf.config import DuplicateKeyError, ParseError
from cmsconf.config.php_array import dumps_php, loads_php


def test_parse_minimal_settings():
    text = """<?php
return [
    'SYS' => [
        'sitename' => 'Demo',
        'displayErrors' => -1,
        'ratio' => 0.5,
        'debug' => FALSE,
        'systemMaintainers' => [1, 3],
    ],
];
"""
    data = loads_php(text)

    assert data == {
        "SYS": {
            "sitename": "Demo",
            "displayErrors": -1,
            "ratio": 0.5,
            "debug": False,
            "systemMaintainers": [1, 3],
        }
    }


def test_array_syntax_and_comments():
    text = """<?php
// generated file
return array(
    'GFX' => array( # image processing
        'processor' => "GraphicsMagick", /* block
        comment */
        'processor_enabled' => true
    )
);
?>"""
    assert loads_php(text) == {"GFX": {"processor": "GraphicsMagick", "processor_enabled": True}}


def test_string_escapes():
    text = r"""<?php return [
    'single' => 'it\'s \n raw \\ here',
    'double' => "tab\there \"q\"",
];"""
    data = loads_php(text)

    assert data["single"] == "it's \\n raw \\ here"
    assert data["double"] == 'tab\there "q"'


@pytest.mark.parametrize(
    ("literal", "expected"),
    [
        (r'"\x41\101"', "AA"),
        (r'"\x4"', "\x04"),
        (r'"\0end"', "\x00end"),
        (r'"\u{2764}"', "❤"),
        (r'"\xe2\x9d\xa4"', "❤"),
        (r'"\$HOME"', "$HOME"),
        (r'"C:\Users\u"', "C:\\Users\\u"),
        (r'"\8"', "\\8"),
    ],
)
def test_double_quoted_escape_sequences(literal: str, expected: str):
    """二重引用符内の16進・8進・Unicode エスケープを展開する。"""

    assert loads_php(f"<?php return ['a' => {literal}];")["a"] == expected


def test_double_quoted_keys_are_unescaped():
    assert loads_php(r'<?php return ["\x53YS" => 1];') == {"SYS": 1}


@pytest.mark.parametrize("literal", [r'"\400"', r'"\u{110000}"', r'"\u{D800}"', r'"\xff"'])
def test_unrepresentable_escapes_raise_parse_error(literal: str):
    with pytest.raises(ParseError) as exc_info:
        loads_php(f"<?php\nreturn ['a' => {literal}];")

    assert exc_info.value.line == 2


def test_empty_array_is_empty_mapping():
    assert loads_php("<?php return ['options' => []];") == {"options": {}}


def test_open_tag_is_optional():
    assert loads_php("return ['a' => 1];") == {"a": 1}


def test_duplicate_key_reports_location():
    text = """<?php
return [
    'SYS' => [
        'sitename' => 'A',
        'sitename' => 'B',
    ],
];
"""
    with pytest.raises(DuplicateKeyError) as exc_info:
        loads_php(text, source="settings.php")

    error = exc_info.value
    assert error.key == "sitename"
    assert error.parent == ("SYS",)
    assert error.line == 5
    assert error.column == 9
    assert "settings.php:5:9" in str(error)


@pytest.mark.parametrize(
    ("text", "line"),
    [
        ("<?php\nreturn [\n    'a' => ,\n];", 3),
        ("<?php\nreturn [\n    'a' => 1\n", None),
        ("<?php\nreturn [\n    'a' => null,\n];", 3),
        ("<?php\nreturn [\n    'a' => FOO,\n];", 3),
        ("<?php\nreturn [\n    0 => 'a',\n];", 3),
        ("<?php\nreturn [\n    'a' => 1,\n    2,\n];", 4),
        ("<?php\nreturn [\n    'a' => \"$x\",\n];", 3),
        ("<?php\nreturn [\n    'a' => 1,\n] extra;", 4),
        ("<?php\nreturn ['a' => 'unterminated];", 2),
        ("<?php\nreturn [1, 2];", 2),
    ],
)
def test_malformed_input_raises_parse_error(text: str, line: int | None):
    with pytest.raises(ParseError) as exc_info:
        loads_php(text)

    assert exc_info.value.line == line


def test_dumps_format_matches_settings_style():
    data = {"SYS": {"sitename": "Demo", "features": {"felogin.extbase": True}, "systemMaintainers": [1, 3]}}

    assert dumps_php(data) == (
        "<?php\n"
        "return [\n"
        "    'SYS' => [\n"
        "        'sitename' => 'Demo',\n"
        "        'features' => [\n"
        "            'felogin.extbase' => true,\n"
        "        ],\n"
        "        'systemMaintainers' => [\n"
        "            1,\n"
        "            3,\n"
        "        ],\n"
        "    ],\n"
        "];\n"
    )


def test_dumps_escapes_quotes_and_backslashes():
    data = {"className": "TYPO3\\CMS\\Core", "footnote": "it's"}

    assert loads_php(dumps_php(data)) == data
