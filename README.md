# smallxml

A small, forgiving XML parser. It reads documents tag by tag, passes them to
SAX-style callbacks or builds an in-memory tree, and writes trees back out
with configurable separators and line wrapping.

It recognises processing instructions (`<?...?>`), comments (`<!--...-->`),
CDATA sections, `<!DOCTYPE ...>` declarations, and special tags that you
register yourself.

## Installing

```
pip install smallxml
```

## Building a tree

```python
from smallxml.dom import parse_buffer

doc = parse_buffer('<?xml version="1.0"?><a x="1"><b>hello</b><c/></a>', "sample")
root = doc.root                       # the same node as doc.nodes[doc.i_root]
print(root.tag)                       # a
print(root.get_attribute("x"))        # 1
print(root.get_child(0).text)         # hello
```

`smallxml.dom.parse_file(filename)` does the same for a file; a byte order
mark, if present, selects the encoding (UTF-8 otherwise) and is recorded in
`XMLDoc.bom`. Pass `text_as_nodes=True` to keep text as separate
`TagType.TEXT` child nodes instead of joining it into the parent's `text`.
A malformed document raises `DOMParseError`, whose `kind`, `line` and
`detail` tell what went wrong (for instance an end tag that does not match
its start tag, or text outside any node).

The tree is made of `smallxml.node.XMLNode` objects, each with a `tag`,
optional `text`, a list of `XMLAttribute` objects, `children`, a `father`
and a `tag_type`. Nodes and attributes can be marked inactive, in which case
lookups and writing skip them. Useful methods include `set_attribute`,
`get_attribute`, `search_attribute`, `remove_attribute`, `add_child`,
`get_child`, `remove_child`, `copy`, `same_as`, `next_sibling` and
`next_node` (document order traversal).

`XMLDoc` holds the top-level nodes (prolog, comments and root) and offers
`add_node`, `remove_node`, `set_root` and `add_child_root`.

## Writing a tree

```python
print(doc.to_string(tag_sep="\n", child_sep="\t"))
```

`XMLDoc.write(stream, ...)` writes to any text stream. `tag_sep` is written
before each tag, `child_sep` once per nesting level and `attr_sep` before
each attribute. Text made only of whitespace is left out unless
`keep_text_spaces=True`. A positive `sz_line` wraps long attribute lists,
counting `nb_char_tab` columns per tab. Special characters in text and
attribute values are written as `&lt;`, `&gt;`, `&quot;` and `&amp;`.

`smallxml.document.write_node` writes a single node with its children, and
`write_node_header` writes only its opening tag.

## Streaming with callbacks

Subclass `smallxml.sax.SAXHandler` and override the events you need:

```python
from smallxml.sax import SAXHandler, parse_buffer_sax

class Counter(SAXHandler):
    def __init__(self):
        self.count = 0

    def start_node(self, node, sd):
        self.count += 1
        return True

handler = Counter()
parse_buffer_sax("<a><b/><c/></a>", "sample", handler, None)
print(handler.count)  # 3
```

The callbacks are `start_doc`, `start_node`, `end_node`, `new_text`,
`on_error`, `end_doc` and `all_event` (called after each dedicated callback
with an `XMLEvent`). Returning a false value stops parsing. Errors are
reported to `on_error` with a `ParseErrorKind`; by default they are printed
to stderr. `parse_buffer_sax` and `parse_file_sax` return `False` when an
error stopped the parse. The SAX parser does not check that end tags match
start tags; that is left to the handler (`DOMBuilder` does it).

## Custom tags

```python
from smallxml.node import TagType, register_user_tag

register_user_tag(TagType.USER, "<%", "%>")
```

Tags starting with `<%` and ending with `%>` are then parsed as nodes of
type `TagType.USER`, with the content between the delimiters as their
`tag`, and written back the same way. `unregister_user_tag`,
`registered_user_tag_count` and `find_user_tag` manage the registry.

## Helpers

`smallxml.textutil` provides entity escaping (`str_to_html`, `html_to_str`,
`html_length`), wildcard matching (`wildcard_match`, with `?`, `*` and `\`
escapes), BOM detection (`read_bom`, `BomType`), `strip_spaces`,
`str_unescape`, `split_left_right` and `LineReader`.

`smallxml.mathutil` offers clamped interpolation and easing functions:
`lerp`, `inv_lerp`, `ease`, `ease_in`, `ease_out`, `clamp` and `clamp01`.

## What it does not do

smallxml is a library only; it has no command-line program. It does not
validate documents against a DTD or schema, does not handle namespaces, and
decodes only the four entities listed above.