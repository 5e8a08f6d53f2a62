"""XML nodes, attributes, user-defined tags and single-tag parsing."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from .textutil import html_to_str

_SPACES = frozenset(" \t\n\v\f\r")
_QUOTES = frozenset("\"'")


def _skip_spaces(text: str, index: int) -> int:
    while index < len(text) and text[index] in _SPACES:
        index += 1
    return index


class TagType(enum.IntEnum):
    """Kinds of node. User-registered tags use values from ``USER`` upwards."""

    ERROR = -1
    NONE = 0
    PARTIAL = 1  # a legal '>' inside the tag stopped reading too early
    FATHER = 2  # <tag>
    SELF = 3  # <tag/>
    INSTR = 4  # <?prolog?>
    COMMENT = 5  # <!--comment-->
    CDATA = 6  # <![CDATA[ ]]>
    DOCTYPE = 7  # <!DOCTYPE [ ]>
    END = 8  # </tag>
    TEXT = 9  # text node
    USER = 100


class XMLSyntaxError(ValueError):
    """Raised when a tag or an attribute cannot be parsed."""


@dataclass
class XMLAttribute:
    """A named attribute value; inactive attributes are ignored."""

    name: str
    value: str
    active: bool = True


@dataclass(frozen=True)
class UserTag:
    """A tag kind delimited by fixed ``start`` and ``end`` strings."""

    tag_type: int
    start: str
    end: str


SPECIAL_TAGS: tuple[UserTag, ...] = (
    UserTag(TagType.INSTR, "<?", "?>"),
    UserTag(TagType.COMMENT, "<!--", "-->"),
    UserTag(TagType.CDATA, "<![CDATA[", "]]>"),
)

_user_tags: list[UserTag] = []


def register_user_tag(tag_type: int, start: str, end: str) -> int:
    """Register a tag kind delimited by ``start`` and ``end``; return its index.

    ``tag_type`` must be at least ``TagType.USER``, ``start`` must begin with
    '<' and ``end`` must finish with '>'.
    """
    if tag_type < TagType.USER:
        raise ValueError(f"user tag type must be at least {int(TagType.USER)}, got {tag_type}")
    if not start.startswith("<"):
        raise ValueError(f"user tag start must begin with '<': {start!r}")
    if not end.endswith(">"):
        raise ValueError(f"user tag end must finish with '>': {end!r}")
    _user_tags.append(UserTag(tag_type, start, end))
    return len(_user_tags) - 1


def unregister_user_tag(index: int) -> int:
    """Remove the registered user tag at ``index``; return how many remain."""
    if not 0 <= index < len(_user_tags):
        raise IndexError(f"no registered user tag at index {index}")
    del _user_tags[index]
    return len(_user_tags)


def registered_user_tag_count() -> int:
    """Number of registered user tags."""
    return len(_user_tags)


def find_user_tag(tag_type: int) -> UserTag | None:
    """First registered user tag of ``tag_type``, or None."""
    return next((tag for tag in _user_tags if tag.tag_type == tag_type), None)


@dataclass(eq=False)
class XMLNode:
    """An XML node with its attributes, text and children."""

    tag: str = ""
    text: str | None = None
    attributes: list[XMLAttribute] = field(default_factory=list)
    tag_type: int = TagType.NONE
    active: bool = True
    user: Any = None
    father: XMLNode | None = field(default=None, repr=False)
    children: list[XMLNode] = field(default_factory=list, repr=False)

    def set_type(self, tag_type: int) -> None:
        """Set the node kind; parser-only kinds are refused."""
        if tag_type in (TagType.ERROR, TagType.END, TagType.PARTIAL, TagType.NONE):
            raise ValueError(f"cannot give a node the type {tag_type!r}")
        self.tag_type = tag_type

    def set_attribute(self, name: str, value: str) -> int:
        """Add or update an attribute; return the number of attributes."""
        if not name:
            raise ValueError("attribute name must not be empty")
        index = self.search_attribute(name)
        if index >= 0:
            self.attributes[index].value = value
        else:
            self.attributes.append(XMLAttribute(name, value))
        return len(self.attributes)

    def get_attribute(self, name: str, default: str | None = "") -> str | None:
        """Value of the active attribute ``name``, or ``default``."""
        if not name:
            raise ValueError("attribute name must not be empty")
        index = self.search_attribute(name)
        return self.attributes[index].value if index >= 0 else default

    def search_attribute(self, name: str, start: int = 0) -> int:
        """Index of the first active attribute ``name`` from ``start``, or -1."""
        if not name:
            raise ValueError("attribute name must not be empty")
        if not 0 <= start < len(self.attributes):
            return -1
        for index in range(start, len(self.attributes)):
            attr = self.attributes[index]
            if attr.active and attr.name == name:
                return index
        return -1

    def remove_attribute(self, index: int) -> int:
        """Remove the attribute at ``index``; return how many remain."""
        if not 0 <= index < len(self.attributes):
            raise IndexError(f"no attribute at index {index}")
        del self.attributes[index]
        return len(self.attributes)

    def remove_all_attributes(self) -> None:
        """Remove every attribute."""
        self.attributes.clear()

    def add_child(self, child: XMLNode) -> None:
        """Append ``child``, which makes this node a father."""
        self.children.append(child)
        self.tag_type = TagType.FATHER
        child.father = self

    def _active_children(self) -> list[XMLNode]:
        return [child for child in self.children if child.active]

    def active_children_count(self) -> int:
        """Number of active children."""
        return len(self._active_children())

    def get_child(self, index: int) -> XMLNode:
        """The ``index``-th active child."""
        active = self._active_children()
        if not 0 <= index < len(active):
            raise IndexError(f"no active child at index {index}")
        return active[index]

    def remove_child(self, index: int) -> int:
        """Remove the ``index``-th active child; return how many children remain."""
        child = self.get_child(index)
        self.children = [c for c in self.children if c is not child]
        child.father = None
        if not self.children:
            self.tag_type = TagType.SELF
        return len(self.children)

    def remove_children(self) -> None:
        """Remove every child."""
        for child in self.children:
            child.father = None
        self.children.clear()

    def copy(self, copy_children: bool = True) -> XMLNode:
        """A copy of this node, with deep copies of its children if asked."""
        dup = XMLNode(
            tag=self.tag,
            text=self.text,
            attributes=[XMLAttribute(a.name, a.value, a.active) for a in self.attributes],
            tag_type=self.tag_type,
            active=self.active,
            user=self.user,
            father=self.father,
        )
        if copy_children:
            for child in self.children:
                child_dup = child.copy(True)
                child_dup.father = dup
                dup.children.append(child_dup)
        return dup

    def same_as(self, other: XMLNode) -> bool:
        """True when both nodes have the same tag and the same active attributes."""
        if self is other:
            return True
        if self.tag != other.tag:
            return False
        for attr in self.attributes:
            if not attr.active:
                continue
            index = other.search_attribute(attr.name)
            if index < 0 or other.attributes[index].value != attr.value:
                return False
        for attr in other.attributes:
            if attr.active and self.search_attribute(attr.name) < 0:
                return False
        return True

    def next_sibling(self) -> XMLNode | None:
        """The node following this one under the same father, or None."""
        if self.father is None:
            return None
        siblings = self.father.children
        for index, node in enumerate(siblings):
            if node is self:
                return siblings[index + 1] if index + 1 < len(siblings) else None
        return None

    def next_node(self) -> XMLNode | None:
        """The next node in document order: first child, next sibling or next uncle."""
        if self.children:
            return self.children[0]
        node: XMLNode | None = self
        while node is not None:
            sibling = node.next_sibling()
            if sibling is not None:
                return sibling
            node = node.father
        return None


def parse_attribute(text: str) -> XMLAttribute:
    """Parse ``name = "value"``; entities in the value are decoded.

    A value that opens with a quote loses its last character whether or not
    it is the matching quote.
    """
    length = len(text)
    n0 = 0
    while n0 < length and text[n0] != "=" and text[n0] not in _SPACES:
        n0 += 1
    n1 = _skip_spaces(text, n0)
    if n1 >= length or text[n1] != "=":
        raise XMLSyntaxError(f"missing '=' in attribute {text!r}")
    n1 = _skip_spaces(text, n1 + 1)
    quoted = 1 if n1 < length and text[n1] in _QUOTES else 0
    value = text[n1 + quoted:length - quoted]
    return XMLAttribute(text[:n0], html_to_str(value))


def _parse_special(text: str, tag: UserTag) -> XMLNode | None:
    if not text.startswith(tag.start):
        return None
    if len(text) < len(tag.start) + len(tag.end) or not text.endswith(tag.end):
        return XMLNode(tag_type=TagType.PARTIAL)
    body = text[len(tag.start):len(text) - len(tag.end)]
    return XMLNode(tag=body, tag_type=tag.tag_type)


def parse_tag(text: str) -> XMLNode:
    """Parse one tag such as ``<tag a="v">``, ``<tag/>`` or ``</tag>``.

    A tag whose end delimiter has not been reached yet (a '>' inside a
    comment, for instance) gives a node of type ``TagType.PARTIAL``.
    """
    if not text.startswith("<") or not text.endswith(">"):
        raise XMLSyntaxError(f"not a tag: {text!r}")

    for special in SPECIAL_TAGS:
        node = _parse_special(text, special)
        if node is not None:
            return node

    if text.startswith("<!DOCTYPE"):
        trim = 0
        if text.find("[", 9) >= 0:
            if not text.endswith("]>"):
                return XMLNode(tag_type=TagType.PARTIAL)
            trim = 1
        return XMLNode(tag=text[9:len(text) - 1 - trim], tag_type=TagType.DOCTYPE)

    for user_tag in _user_tags:
        node = _parse_special(text, user_tag)
        if node is not None:
            return node

    length = len(text)
    is_end = text[1] == "/"
    n = 2 if is_end else 1
    while n < length and text[n] not in "/>" and text[n] not in _SPACES:
        n += 1
    node = XMLNode(tag=text[(2 if is_end else 1):n])
    if is_end:
        node.tag_type = TagType.END
        return node

    while n < length:
        n = _skip_spaces(text, n)
        if n < length and text[n] == ">":
            node.tag_type = TagType.FATHER
            return node
        if text[n:] == "/>":
            node.tag_type = TagType.SELF
            return node

        equal = text.find("=", n)
        if equal < 0:
            raise XMLSyntaxError(f"malformed attribute in {text!r}")
        p = _skip_spaces(text, equal + 1)
        if p < length and text[p] in _QUOTES:
            close = text.find(text[p], p + 1)
            if close < 0:
                raise XMLSyntaxError(f"unterminated attribute value in {text!r}")
            end = close + 1
        else:
            end = p + 1
            while end < length and text[end] not in _SPACES and text[end] not in "/>":
                end += 1
        node.attributes.append(parse_attribute(text[n:end]))
        n = end

    raise XMLSyntaxError(f"unterminated tag {text!r}")