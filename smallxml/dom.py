"""Building XML documents in memory on top of the SAX parser."""

from __future__ import annotations

import os

from .document import XMLDoc
from .node import TagType, XMLNode
from .sax import ParseErrorKind, SAXData, SAXHandler, parse_buffer_sax, parse_file_sax
from .textutil import read_bom

_SPACES = frozenset(" \t\n\v\f\r")

_ERROR_NAMES = {
    ParseErrorKind.MEMORY: "MEMORY",
    ParseErrorKind.UNEXPECTED_TAG_END: "UNEXPECTED_TAG_END",
    ParseErrorKind.SYNTAX: "SYNTAX",
    ParseErrorKind.EOF: "UNEXPECTED_END_OF_FILE",
    ParseErrorKind.TEXT_OUTSIDE_NODE: "TEXT_OUTSIDE_NODE",
    ParseErrorKind.UNEXPECTED_NODE_END: "UNEXPECTED_NODE_END",
}


class DOMParseError(ValueError):
    """Raised when a document cannot be loaded."""

    def __init__(self, kind: ParseErrorKind, line: int, name: str | None, detail: str = "") -> None:
        self.kind = kind
        self.line = line
        self.name = name
        self.detail = detail
        label = _ERROR_NAMES.get(kind, "UNKNOWN")
        message = f"{name}:{line}: An error was found ({label}), loading aborted"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class DOMBuilder(SAXHandler):
    """SAX handler that fills an :class:`XMLDoc` with the parsed nodes.

    After an error, ``error`` and ``line_error`` tell what went wrong and
    ``doc`` is emptied and set to None.
    """

    def __init__(self, doc: XMLDoc | None = None, text_as_nodes: bool = False) -> None:
        self.doc: XMLDoc | None = doc if doc is not None else XMLDoc()
        self.text_as_nodes = text_as_nodes
        self.current: XMLNode | None = None
        self.error = ParseErrorKind.NONE
        self.line_error = 0
        self.detail = ""

    def _fail(self, error: ParseErrorKind, line: int, detail: str = "") -> bool:
        self.error = error
        self.line_error = line
        self.detail = detail
        return False

    def start_doc(self, sd: SAXData) -> bool:
        self.current = None
        self.error = ParseErrorKind.NONE
        self.line_error = 0
        self.detail = ""
        return True

    def start_node(self, node: XMLNode, sd: SAXData) -> bool:
        assert self.doc is not None
        new_node = node.copy(True)
        if self.current is None:
            self.doc.nodes.append(new_node)
            if self.doc.i_root < 0 and node.tag_type in (TagType.FATHER, TagType.SELF):
                self.doc.i_root = len(self.doc.nodes) - 1
        else:
            self.current.children.append(new_node)
        new_node.father = self.current
        self.current = new_node
        return True

    def end_node(self, node: XMLNode, sd: SAXData) -> bool:
        if self.current is None or self.current.tag != node.tag:
            expected = (
                f"</{self.current.tag}> was expected" if self.current is not None else "no node to end"
            )
            return self._fail(
                ParseErrorKind.UNEXPECTED_NODE_END,
                sd.line_num,
                f"end tag </{node.tag}> was unexpected ({expected})",
            )
        self.current = self.current.father
        return True

    def new_text(self, text: str, sd: SAXData) -> bool:
        if self.current is None:
            # Spaces between top-level nodes are only formatting.
            if all(char in _SPACES for char in text):
                return True
            return self._fail(ParseErrorKind.TEXT_OUTSIDE_NODE, sd.line_num)

        if self.text_as_nodes:
            text_node = XMLNode(text=text, tag_type=TagType.TEXT, father=self.current)
            self.current.children.append(text_node)
        else:
            self.current.text = (self.current.text or "") + text
        return True

    def on_error(self, error: ParseErrorKind, line: int, sd: SAXData) -> bool:
        return self._fail(error, line)

    def end_doc(self, sd: SAXData) -> bool:
        if self.error != ParseErrorKind.NONE:
            self.current = None
            if self.doc is not None:
                self.doc.nodes.clear()
                self.doc.i_root = -1
            self.doc = None
        return True


def _finish(builder: DOMBuilder, ok: bool, name: str | None) -> XMLDoc:
    if builder.error != ParseErrorKind.NONE:
        raise DOMParseError(builder.error, builder.line_error, name, builder.detail)
    if not ok or builder.doc is None:
        raise DOMParseError(ParseErrorKind.SYNTAX, builder.line_error, name)
    return builder.doc


def parse_buffer(buffer: str, name: str | None = None, text_as_nodes: bool = False) -> XMLDoc:
    """Load a document from ``buffer``.

    With ``text_as_nodes``, text goes into separate ``TagType.TEXT`` child
    nodes instead of being joined into the node's ``text``. Raises
    :class:`DOMParseError` on a malformed document.
    """
    builder = DOMBuilder(XMLDoc(), text_as_nodes)
    ok = parse_buffer_sax(buffer, name, builder, builder)
    return _finish(builder, ok, name)


def parse_file(filename: str | os.PathLike[str], text_as_nodes: bool = False) -> XMLDoc:
    """Load a document from the file ``filename``.

    The document records the file name and its byte order mark. Raises
    :class:`DOMParseError` on a malformed document and OSError when the file
    cannot be read.
    """
    path = os.fspath(filename)
    if not path:
        raise ValueError("file name must not be empty")
    with open(path, "rb") as raw:
        bom = read_bom(raw)
    doc = XMLDoc(filename=path, bom=bom)
    builder = DOMBuilder(doc, text_as_nodes)
    ok = parse_file_sax(path, builder, builder)
    return _finish(builder, ok, path)