"""XML documents and their serialisation."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import IO

from .node import SPECIAL_TAGS, TagType, XMLNode, find_user_tag
from .textutil import BomType, str_to_html

_SPACES = frozenset(" \t\n\v\f\r")


class _Writer:
    """Writes nodes to a text stream, keeping track of the current line length."""

    def __init__(
        self,
        stream: IO[str],
        tag_sep: str | None,
        child_sep: str | None,
        attr_sep: str | None,
        keep_text_spaces: bool,
        sz_line: int,
        nb_char_tab: int,
    ) -> None:
        self.stream = stream
        self.tag_sep = tag_sep
        self.child_sep = child_sep
        self.attr_sep = attr_sep
        self.keep_text_spaces = keep_text_spaces
        self.sz_line = sz_line
        self.nb_char_tab = max(1, nb_char_tab)

    def _advance(self, text: str, cur: int) -> int:
        for char in text:
            if char == "\n":
                cur = 0
            elif char == "\t":
                cur += self.nb_char_tab
            else:
                cur += 1
        return cur

    def _emit_counted(self, text: str, cur: int) -> int:
        self.stream.write(text)
        return self._advance(text, cur)

    def _printable(self, text: str) -> bool:
        if not text:
            return False
        return self.keep_text_spaces or any(char not in _SPACES for char in text)

    def _emit_text(self, text: str, cur: int) -> int:
        escaped = str_to_html(text)
        self.stream.write(escaped)
        return cur + len(escaped)

    def formatting(self, node: XMLNode, cur: int) -> int:
        """Write the tag separator and one child separator per ancestor."""
        if self.tag_sep:
            cur = self._emit_counted(self.tag_sep, cur)
        if self.child_sep:
            ancestor = node.father
            while ancestor is not None:
                cur = self._emit_counted(self.child_sep, cur)
                ancestor = ancestor.father
        return cur

    def header(self, node: XMLNode, cur: int) -> int:
        """Write the opening tag of ``node`` with its attributes."""
        if node.tag_type == TagType.DOCTYPE:
            bracket = _unescaped_bracket(node.tag)
            out = f"<!DOCTYPE{node.tag}{']' if bracket else ''}>"
            self.stream.write(out)
            return cur + len(out)

        for special in SPECIAL_TAGS:
            if node.tag_type == special.tag_type:
                out = f"{special.start}{node.tag}{special.end}"
                self.stream.write(out)
                return cur + len(out)

        user_tag = find_user_tag(node.tag_type)
        if user_tag is not None:
            out = f"{user_tag.start}{node.tag}{user_tag.end}"
            self.stream.write(out)
            return cur + len(out)

        self.stream.write(f"<{node.tag}")
        cur += 1 + len(node.tag)

        for attr in node.attributes:
            if not attr.active:
                continue
            value = attr.value or ""
            cur += len(attr.name) + len(value) + 3
            if self.sz_line > 0 and cur > self.sz_line:
                cur = self.formatting(node, cur)
                # Extra indentation, as if the continuation were a child line.
                if self.child_sep:
                    cur = self._emit_counted(self.child_sep, cur)
            if self.attr_sep is not None:
                cur = self._emit_counted(self.attr_sep, cur)
                self.stream.write(f"{attr.name}=")
            else:
                self.stream.write(f" {attr.name}=")
            escaped = str_to_html(value)
            self.stream.write(f'"{escaped}"')
            cur += len(escaped) + 2

        if not node.children and not node.text:
            self.stream.write("/>")
            cur += 2
        else:
            self.stream.write(">")
            cur += 1
        return cur

    def node(self, node: XMLNode, cur: int, first: bool) -> int | None:
        """Write ``node`` and its children; None when the node is skipped."""
        if node.tag_type == TagType.TEXT:
            text = node.text or ""
            if self._printable(text):
                cur = self._emit_text(text, cur)
            return cur

        if not node.active or not node.tag:
            return None

        if not first:
            cur = self.formatting(node, cur)

        # The header length does not carry over to the rest of the node.
        self.header(node, cur)

        if node.text:
            if self._printable(node.text):
                cur = self._emit_text(node.text, cur)
        elif not node.children:
            return cur

        for child in node.children:
            self.node(child, cur, False)

        if node.children:
            cur = self.formatting(node, cur)
        closing = f"</{node.tag}>"
        self.stream.write(closing)
        return cur + len(closing)


def _unescaped_bracket(tag: str) -> bool:
    index = tag.find("[")
    while index > 0 and tag[index - 1] == "\\":
        index = tag.find("[", index + 1)
    return index >= 0


@dataclass
class XMLDoc:
    """An XML document: prolog, comments and root nodes in document order."""

    filename: str = ""
    nodes: list[XMLNode] = field(default_factory=list)
    i_root: int = -1
    bom: BomType = BomType.NONE

    @property
    def root(self) -> XMLNode | None:
        """The root node, or None when the document has none."""
        if 0 <= self.i_root < len(self.nodes):
            return self.nodes[self.i_root]
        return None

    def add_node(self, node: XMLNode) -> int:
        """Append a top-level node; return the number of nodes.

        A father node becomes the document root.
        """
        self.nodes.append(node)
        if node.tag_type == TagType.FATHER:
            self.i_root = len(self.nodes) - 1
        return len(self.nodes)

    def remove_node(self, index: int) -> int:
        """Remove the top-level node at ``index``; return how many remain."""
        if not 0 <= index < len(self.nodes):
            raise IndexError(f"no node at index {index}")
        del self.nodes[index]
        if index == self.i_root:
            self.i_root = -1
        elif index < self.i_root:
            self.i_root -= 1
        return len(self.nodes)

    def set_root(self, index: int) -> None:
        """Make the top-level node at ``index`` the document root."""
        if not 0 <= index < len(self.nodes):
            raise IndexError(f"no node at index {index}")
        self.i_root = index

    def add_child_root(self, child: XMLNode) -> None:
        """Append ``child`` to the root node."""
        root = self.root
        if root is None:
            raise ValueError("document has no root node")
        root.add_child(child)

    def write(
        self,
        stream: IO[str],
        tag_sep: str | None = "\n",
        child_sep: str | None = "\t",
        attr_sep: str | None = " ",
        keep_text_spaces: bool = False,
        sz_line: int = 0,
        nb_char_tab: int = 4,
    ) -> None:
        """Write every top-level node to ``stream``.

        ``tag_sep`` goes before each tag, ``child_sep`` once per nesting level,
        ``attr_sep`` before each attribute. Text made only of spaces is left
        out unless ``keep_text_spaces``. A positive ``sz_line`` wraps long
        attribute lists, counting ``nb_char_tab`` columns per tab.
        """
        writer = _Writer(stream, tag_sep, child_sep, attr_sep, keep_text_spaces, sz_line, nb_char_tab)
        if self.bom is not BomType.NONE:
            stream.write("\ufeff")
        cur = 0
        first = True
        for node in self.nodes:
            result = writer.node(node, cur, first)
            if result is not None:
                cur = result
            first = False

    def to_string(
        self,
        tag_sep: str | None = "\n",
        child_sep: str | None = "\t",
        attr_sep: str | None = " ",
        keep_text_spaces: bool = False,
        sz_line: int = 0,
        nb_char_tab: int = 4,
    ) -> str:
        """The document as text, formatted as by :meth:`write`."""
        buffer = io.StringIO()
        self.write(buffer, tag_sep, child_sep, attr_sep, keep_text_spaces, sz_line, nb_char_tab)
        return buffer.getvalue()


def write_node(
    node: XMLNode,
    stream: IO[str],
    tag_sep: str | None = "\n",
    child_sep: str | None = "\t",
    attr_sep: str | None = " ",
    keep_text_spaces: bool = False,
    sz_line: int = 0,
    nb_char_tab: int = 4,
) -> None:
    """Write ``node`` and its children, preceded by its formatting.

    Inactive nodes write nothing. Raises ValueError for an element without a tag.
    """
    if node.tag_type != TagType.TEXT and not node.tag:
        raise ValueError("node has no tag")
    writer = _Writer(stream, tag_sep, child_sep, attr_sep, keep_text_spaces, sz_line, nb_char_tab)
    writer.node(node, 0, False)


def write_node_header(node: XMLNode, stream: IO[str], sz_line: int = 0, nb_char_tab: int = 4) -> int:
    """Write only the opening tag of ``node``; return the line length reached."""
    if not node.tag:
        raise ValueError("node has no tag")
    if not node.active:
        return 0
    writer = _Writer(stream, None, None, None, False, sz_line, nb_char_tab)
    return writer.header(node, 0)