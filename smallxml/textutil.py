"""Text helpers: entity escaping, space stripping, splitting, wildcards, BOMs and line reading."""

from __future__ import annotations

import enum
import io
import re
from typing import IO, NamedTuple

_SPACES = frozenset(" \t\n\v\f\r")
_QUOTES = frozenset("\"'")

_HTML_SPECIALS = {
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "&": "&amp;",
}
_HTML_REVERSE = {entity: char for char, entity in _HTML_SPECIALS.items()}
_HTML_ENTITY_RE = re.compile("|".join(re.escape(e) for e in _HTML_REVERSE))


def _is_space(char: str) -> bool:
    return char in _SPACES


def _skip_spaces(text: str, index: int) -> int:
    while index < len(text) and _is_space(text[index]):
        index += 1
    return index


class BomType(enum.Enum):
    """Byte order marks that may start a file; the value is the mark itself."""

    NONE = b""
    UTF_8 = b"\xef\xbb\xbf"
    UTF_16BE = b"\xfe\xff"
    UTF_16LE = b"\xff\xfe"
    UTF_32BE = b"\x00\x00\xfe\xff"
    UTF_32LE = b"\xff\xfe\x00\x00"

    @property
    def size(self) -> int:
        """Number of bytes in the mark."""
        return len(self.value)


def read_bom(stream: IO[bytes]) -> BomType:
    """Detect a BOM at the current position of a binary stream.

    The stream is left just after the BOM when one is found, and at its
    original position otherwise.
    """
    pos = stream.tell()
    head = stream.read(2)
    if len(head) < 2:
        stream.seek(pos)
        return BomType.NONE

    if head == b"\xfe\xff":
        return BomType.UTF_16BE

    if head == b"\xff\xfe":
        after = stream.tell()
        if stream.read(2) == b"\x00\x00":
            return BomType.UTF_32LE
        stream.seek(after)
        return BomType.UTF_16LE

    if head == b"\x00\x00":
        if stream.read(2) == b"\xfe\xff":
            return BomType.UTF_32BE
        stream.seek(pos)
        return BomType.NONE

    if head == b"\xef\xbb":
        if stream.read(1) == b"\xbf":
            return BomType.UTF_8
        stream.seek(pos)
        return BomType.NONE

    stream.seek(pos)
    return BomType.NONE


class LineReader:
    """Reads delimited chunks of characters from a string or a text stream."""

    def __init__(self, stream: str | IO[str]) -> None:
        if isinstance(stream, str):
            stream = io.StringIO(stream)
        self._stream = stream
        self._pending: str | None = None

    def _getc(self) -> str:
        if self._pending is not None:
            char, self._pending = self._pending, None
            return char
        return self._stream.read(1)

    def at_end(self) -> bool:
        """Return True when no character is left to read."""
        if self._pending is None:
            self._pending = self._stream.read(1)
        return self._pending == ""

    def read_line(
        self,
        start: str = "",
        end: str = "\n",
        keep_delimiters: bool = True,
        interest: str = "\n",
    ) -> tuple[str, int]:
        """Read from the next ``start`` character up to the next ``end`` character.

        An empty ``start`` reads from the current position; an empty ``end``
        means a newline. Returns the text read and the number of ``interest``
        characters met on the way (skipped characters included). Reaching the
        end of input before ``end`` returns what was read so far.
        """
        end = end or "\n"
        count = 0

        while True:
            char = self._getc()
            if interest and char == interest:
                count += 1
            if not start or char == start or char == "":
                break

        if char == "":
            return "", count

        parts = []
        if char != start or keep_delimiters:
            parts.append(char)

        while True:
            char = self._getc()
            if char == "":
                break
            if interest and char == interest:
                count += 1
            if char == end:
                if keep_delimiters:
                    parts.append(char)
                break
            parts.append(char)

        return "".join(parts), count


def html_to_str(html: str) -> str:
    """Replace the entities &lt; &gt; &quot; and &amp; by their characters."""
    return _HTML_ENTITY_RE.sub(lambda m: _HTML_REVERSE[m.group(0)], html)


def str_to_html(text: str) -> str:
    """Replace the characters < > \" and & by their entities."""
    return "".join(_HTML_SPECIALS.get(char, char) for char in text)


def html_length(text: str | None) -> int:
    """Length of ``text`` once its special characters are escaped."""
    if text is None:
        return 0
    return sum(len(_HTML_SPECIALS.get(char, char)) for char in text)


def strip_spaces(text: str, repl_sq: str = "") -> str:
    """Strip leading and trailing spaces, optionally squeezing inner spaces.

    A backslash right before the trailing spaces protects one of them. When
    ``repl_sq`` is given, every run of spaces becomes that string and a
    backslash protects the character that follows it.
    """
    first = _skip_spaces(text, 0)
    if first == len(text):
        return ""
    last = len(text) - 1
    while _is_space(text[last]):
        last -= 1
    if text[last] == "\\":
        last += 1
    body = text[first:last + 1]

    if not repl_sq:
        return body

    out = []
    i = 0
    while i < len(body):
        char = body[i]
        if _is_space(char):
            out.append(repl_sq)
            i = _skip_spaces(body, i + 1)
            continue
        if char == "\\":
            i += 1
            if i >= len(body):
                break
            char = body[i]
        out.append(char)
        i += 1
    return "".join(out)


def str_unescape(text: str) -> str:
    """Remove backslashes, keeping the character each one protects."""
    out = []
    chars = iter(text)
    for char in chars:
        if char == "\\":
            char = next(chars, "")
        out.append(char)
    return "".join(out)


class SplitResult(NamedTuple):
    """Inclusive index bounds of the parts found by :func:`split_left_right`.

    ``sep_index`` is -1 when there is no separator; an empty right part has
    ``right_end == right_start - 1``.
    """

    left_start: int
    left_end: int
    sep_index: int
    right_start: int
    right_end: int

    def left(self, text: str) -> str:
        """The left part of ``text``."""
        return text[self.left_start:self.left_end + 1]

    def right(self, text: str) -> str:
        """The right part of ``text``."""
        return text[self.right_start:self.right_end + 1]


def _scan_quoted(text: str, index: int, quote: str) -> int:
    """Index of the closing ``quote`` from ``index``, honouring backslashes."""
    while index < len(text) and text[index] != quote:
        if text[index] == "\\":
            index += 1
        index += 1
    if index >= len(text):
        raise ValueError(f"unterminated quote in {text!r}")
    return index


def split_left_right(
    text: str,
    sep: str,
    ignore_spaces: bool = True,
    ignore_quotes: bool = False,
) -> SplitResult:
    """Split ``text`` into a left and right part around ``sep``.

    With ``ignore_spaces``, spaces around the parts are left out of the bounds.
    With ``ignore_quotes`` (only meaningful with ``ignore_spaces``), quotes
    around a part are left out too. Raises ValueError on a malformed string.
    """
    if not ignore_spaces:
        ignore_quotes = False
    n = len(text)

    if ignore_spaces:
        l0 = _skip_spaces(text, 0)
        if ignore_quotes and l0 < n and text[l0] in _QUOTES:
            quote = text[l0]
            l0 += 1
            l1 = _scan_quoted(text, l0, quote)
            i_sep = _skip_spaces(text, l1 + 1)
        else:
            l1 = l0
            while l1 < n and text[l1] != sep and not _is_space(text[l1]):
                l1 += 1
            i_sep = _skip_spaces(text, l1)
    else:
        l0 = 0
        l1 = text.find(sep)
        if l1 < 0:
            raise ValueError(f"separator {sep!r} not found in {text!r}")
        i_sep = l1

    if i_sep < n and text[i_sep] != sep:
        raise ValueError(f"unexpected {text[i_sep]!r} where {sep!r} was expected in {text!r}")

    if i_sep >= n or i_sep + 1 >= n:
        return SplitResult(l0, l1 - 1, -1 if i_sep >= n else i_sep, i_sep, i_sep - 1)

    r0 = i_sep + 1
    if ignore_spaces:
        r0 = _skip_spaces(text, r0)

    if ignore_quotes and r0 < n and text[r0] in _QUOTES:
        quote = text[r0]
        r0 += 1
        r1 = _scan_quoted(text, r0, quote) - 1
    else:
        r1 = n - 1
        if ignore_spaces:
            while r1 >= r0 and _is_space(text[r1]):
                r1 -= 1

    return SplitResult(l0, l1 - 1, i_sep, r0, r1)


def wildcard_match(text: str | None, pattern: str | None) -> bool:
    """Match ``text`` against ``pattern``.

    ``?`` matches any character, ``*`` skips to the first occurrence of the
    next pattern character and ``\\`` escapes the following character.
    """
    if text is None and pattern is None:
        return True
    if text is None or pattern is None:
        return False

    p = s = 0
    lp, ls = len(pattern), len(text)
    while True:
        if p >= lp:
            return s >= ls
        char = pattern[p]
        if char == "?":
            if s >= ls:
                return False
            p += 1
            s += 1
        elif char == "*":
            while p < lp and pattern[p] in "*?":
                p += 1
            if p >= lp:
                return True
            target = pattern[p]
            if target == "\\" and p + 1 < lp:
                target = pattern[p + 1]
            while s < ls and text[s] != target:
                s += 1
        else:
            if char == "\\" and p + 1 < lp:
                p += 1
                char = pattern[p]
            if s >= ls or text[s] != char:
                return False
            p += 1
            s += 1