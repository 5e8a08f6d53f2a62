"""Event-driven (SAX) parsing of XML text from strings and files."""

from __future__ import annotations

import enum
import io
import os
import sys
from dataclasses import dataclass
from typing import IO, Any

from .node import TagType, XMLNode, XMLSyntaxError, parse_tag
from .textutil import BomType, LineReader, read_bom

_SPACES = frozenset(" \t\n\v\f\r")

_BOM_ENCODINGS = {
    BomType.NONE: "utf-8",
    BomType.UTF_8: "utf-8",
    BomType.UTF_16BE: "utf-16-be",
    BomType.UTF_16LE: "utf-16-le",
    BomType.UTF_32BE: "utf-32-be",
    BomType.UTF_32LE: "utf-32-le",
}


class ParseErrorKind(enum.IntEnum):
    """Errors reported while parsing."""

    NONE = 0
    MEMORY = -1
    UNEXPECTED_TAG_END = -2
    SYNTAX = -3
    EOF = -4
    TEXT_OUTSIDE_NODE = -5
    UNEXPECTED_NODE_END = -6


class XMLEvent(enum.IntEnum):
    """Events passed to :meth:`SAXHandler.all_event`."""

    START_DOC = 0
    START_NODE = 1
    END_NODE = 2
    TEXT = 3
    ERROR = 4
    END_DOC = 5


@dataclass
class SAXData:
    """Parsing state handed to every callback."""

    name: str | None
    line_num: int = 1
    user: Any = None


class SAXHandler:
    """Callbacks of the SAX parser; each returns False to stop parsing.

    The parser does not check that end tags match start tags: that is left
    to the handler.
    """

    def start_doc(self, sd: SAXData) -> bool:
        """Called before the first node."""
        return True

    def start_node(self, node: XMLNode, sd: SAXData) -> bool:
        """Called for ``<tag>`` and ``<tag/>``, and for special tags."""
        return True

    def end_node(self, node: XMLNode, sd: SAXData) -> bool:
        """Called for ``</tag>`` and right after the start of any non-father node."""
        return True

    def new_text(self, text: str, sd: SAXData) -> bool:
        """Called with the text found before a tag."""
        return True

    def on_error(self, error: ParseErrorKind, line: int, sd: SAXData) -> bool:
        """Called when an error stops the parse.

        Unless :meth:`all_event` is overridden, the error is written to stderr.
        """
        if type(self).all_event is SAXHandler.all_event:
            print(f"{sd.name}:{line}: {error.name} ERROR.", file=sys.stderr)
        return True

    def end_doc(self, sd: SAXData) -> bool:
        """Called when parsing is over; nothing is called after it but ``all_event``."""
        return True

    def all_event(
        self,
        event: XMLEvent,
        node: XMLNode | None,
        text: str | None,
        n: int,
        sd: SAXData,
    ) -> bool:
        """Called for every event after its dedicated callback.

        ``text`` is the source name for document events and the text for
        ``TEXT``; ``n`` is the line number, or the error kind for ``ERROR``.
        """
        return True


def _only_spaces(text: str) -> bool:
    return all(char in _SPACES for char in text)


def _report(handler: SAXHandler, sd: SAXData, error: ParseErrorKind) -> None:
    if handler.on_error(error, sd.line_num, sd):
        handler.all_event(XMLEvent.ERROR, None, sd.name, int(error), sd)


def _read(reader: LineReader, sd: SAXData) -> str:
    chunk, newlines = reader.read_line("", ">", True, "\n")
    sd.line_num += newlines
    return chunk


def _parse_body(reader: LineReader, handler: SAXHandler, sd: SAXData) -> bool:
    sd.line_num = 1
    while True:
        line, newlines = reader.read_line("", ">", True, "\n")
        if _only_spaces(line):
            return True
        sd.line_num += newlines

        # A '>' without '<' may be a stray character in text: keep reading.
        start = line.find("<")
        while start < 0:
            more = _read(reader, sd)
            if not more:
                break
            line += more
            start = line.find("<")
        if start < 0:
            _report(handler, sd, ParseErrorKind.UNEXPECTED_TAG_END)
            return False

        text = line[:start]
        if text:
            if not handler.new_text(text, sd):
                return True
            if not handler.all_event(XMLEvent.TEXT, None, text, sd.line_num, sd):
                return True

        try:
            node = parse_tag(line[start:])
        except XMLSyntaxError:
            _report(handler, sd, ParseErrorKind.SYNTAX)
            return False

        if node.tag_type == TagType.END:
            if not handler.end_node(node, sd):
                return True
            if not handler.all_event(XMLEvent.END_NODE, node, None, sd.line_num, sd):
                return True
        else:
            while node.tag_type == TagType.PARTIAL:
                more = _read(reader, sd)
                if not more:
                    _report(handler, sd, ParseErrorKind.EOF)
                    return False
                line += more
                try:
                    node = parse_tag(line[start:])
                except XMLSyntaxError:
                    kind = ParseErrorKind.EOF if reader.at_end() else ParseErrorKind.SYNTAX
                    _report(handler, sd, kind)
                    return False
            if not handler.start_node(node, sd):
                return True
            if not handler.all_event(XMLEvent.START_NODE, node, None, sd.line_num, sd):
                return True
            if node.tag_type != TagType.FATHER:
                if not handler.end_node(node, sd):
                    return True
                if not handler.all_event(XMLEvent.END_NODE, node, None, sd.line_num, sd):
                    return True

        if reader.at_end():
            return True


def _parse(reader: LineReader, handler: SAXHandler, sd: SAXData) -> bool:
    if not handler.start_doc(sd):
        return True
    if not handler.all_event(XMLEvent.START_DOC, None, sd.name, 0, sd):
        return True
    ok = _parse_body(reader, handler, sd)
    if not handler.end_doc(sd):
        return ok
    handler.all_event(XMLEvent.END_DOC, None, sd.name, sd.line_num, sd)
    return ok


def parse_buffer_sax(buffer: str, name: str | None, handler: SAXHandler, user: Any = None) -> bool:
    """Parse ``buffer``, calling ``handler``; return False when an error stopped the parse."""
    sd = SAXData(name=name, user=user)
    return _parse(LineReader(buffer), handler, sd)


def parse_file_sax(filename: str | os.PathLike[str], handler: SAXHandler, user: Any = None) -> bool:
    """Parse the file ``filename``, calling ``handler``.

    A byte order mark selects the encoding and is skipped; without one the
    file is read as UTF-8. Return False when an error stopped the parse.
    """
    path = os.fspath(filename)
    if not path:
        raise ValueError("file name must not be empty")
    with open(path, "rb") as raw:
        bom = read_bom(raw)
        stream: IO[str] = io.TextIOWrapper(raw, encoding=_BOM_ENCODINGS[bom])
        try:
            sd = SAXData(name=path, user=user)
            return _parse(LineReader(stream), handler, sd)
        finally:
            stream.detach()