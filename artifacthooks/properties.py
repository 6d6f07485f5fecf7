"""Reader for the flat ``key=value`` subscription file.

The format follows java.util.Properties so files written for the original
repository-manager plugin keep working: ``#``/``!`` comments, ``=``, ``:`` or
whitespace separators, backslash line continuations and ``\\uXXXX`` escapes.
"""

from __future__ import annotations

import re
import string
from pathlib import Path

_WHITESPACE = " \t\f"
_NEWLINE = re.compile(r"\r\n|\r|\n")
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _continues(line: str) -> bool:
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def _logical_lines(text: str):
    pending: str | None = None
    for raw in _NEWLINE.split(text):
        line = raw.lstrip(_WHITESPACE)
        if pending is None and (not line or line[0] in "#!"):
            continue
        if _continues(line):
            pending = (pending or "") + line[:-1]
            continue
        yield (pending or "") + line
        pending = None
    if pending is not None:
        yield pending


def _split(line: str) -> tuple[str, str]:
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch in "=:" or ch in _WHITESPACE:
            break
        i += 1
    key = line[:i]
    rest = line[i:].lstrip(_WHITESPACE)
    if rest and rest[0] in "=:":
        rest = rest[1:].lstrip(_WHITESPACE)
    return key, rest


def _unescape(text: str) -> str:
    if "\\" not in text:
        return text
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        i += 1
        if i >= len(text):
            break
        ch = text[i]
        if ch == "u":
            digits = text[i + 1 : i + 5]
            if len(digits) != 4 or any(c not in string.hexdigits for c in digits):
                raise ValueError(f"Malformed \\uxxxx encoding near {text[i - 1 : i + 5]!r}")
            out.append(chr(int(digits, 16)))
            i += 5
            continue
        out.append(_ESCAPES.get(ch, ch))
        i += 1
    return "".join(out)


def loads(text: str) -> dict[str, str]:
    """Parse properties text. Later duplicates win, as in java.util.Properties.

    Raises ``ValueError`` on a malformed unicode escape.
    """
    result: dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split(line)
        result[_unescape(key)] = _unescape(value)
    return result


def load(path: str | Path) -> dict[str, str]:
    """Read and parse a properties file.

    Raises ``OSError`` when the file cannot be read, ``UnicodeDecodeError``
    when it is not UTF-8, and ``ValueError`` for malformed escapes.
    """
    with open(path, "r", encoding="utf-8") as handle:
        data = handle.read()
    return loads(data)
