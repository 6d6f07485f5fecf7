from pathlib import Path

import pytest

from artifacthooks import properties


def test_separators_and_whitespace():
    parsed = properties.loads(
        "a=1\n"
        "b : 2\n"
        "c 3\n"
        "  d   =   4  \n"
    )
    assert parsed == {"a": "1", "b": "2", "c": "3", "d": "4  "}


def test_comments_and_blank_lines_are_skipped():
    parsed = properties.loads("# comment\n! also a comment\n\n   \nkey=value\n")
    assert parsed == {"key": "value"}


def test_line_continuation_joins_and_strips_indent():
    parsed = properties.loads("urls = http://a/,\\\n     http://b/\nnext=1\n")
    assert parsed == {"urls": "http://a/,http://b/", "next": "1"}


def test_escaped_backslash_does_not_continue():
    parsed = properties.loads("path=C:\\\\\nnext=1\n")
    assert parsed == {"path": "C:\\", "next": "1"}


def test_unicode_and_char_escapes():
    parsed = properties.loads("k\\=ey=caf\\u00e9\\tx\n")
    assert parsed == {"k=ey": "caf\u00e9\tx"}


def test_malformed_unicode_escape_raises():
    with pytest.raises(ValueError):
        properties.loads("key=\\u12G4\n")


def test_empty_value_and_duplicates():
    parsed = properties.loads("empty=\nkey=first\nkey=second\n")
    assert parsed == {"empty": "", "key": "second"}


def test_windows_line_endings():
    assert properties.loads("a=1\r\nb=2\r\n") == {"a": "1", "b": "2"}


def test_load_reads_file(tmp_path: Path):
    path = tmp_path / "webhooks.properties"
    path.write_text("webhooks.default=http://h/\n", encoding="utf-8")
    assert properties.load(path) == {"webhooks.default": "http://h/"}


def test_load_missing_file_raises(tmp_path: Path):
    with pytest.raises(OSError):
        properties.load(tmp_path / "missing.properties")
