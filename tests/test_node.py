import pytest

from smallxml.node import (
    TagType,
    XMLAttribute,
    XMLNode,
    XMLSyntaxError,
    find_user_tag,
    parse_attribute,
    parse_tag,
    register_user_tag,
    registered_user_tag_count,
    unregister_user_tag,
)


@pytest.fixture(autouse=True)
def clean_user_tags():
    yield
    while registered_user_tag_count():
        unregister_user_tag(0)


def test_parse_father_with_attributes():
    node = parse_tag('<item id="12" name=\'x &amp; y\'>')
    assert node.tag_type == TagType.FATHER
    assert node.tag == "item"
    assert [(a.name, a.value) for a in node.attributes] == [("id", "12"), ("name", "x & y")]


def test_parse_self_closing_and_end():
    node = parse_tag('<br a="1"/>')
    assert node.tag_type == TagType.SELF
    assert node.tag == "br"
    assert node.get_attribute("a") == "1"
    end = parse_tag("</br>")
    assert end.tag_type == TagType.END
    assert end.tag == "br"


def test_parse_unquoted_attribute():
    node = parse_tag("<a b=c>")
    assert node.tag_type == TagType.FATHER
    assert node.get_attribute("b") == "c"


@pytest.mark.parametrize(
    "text, kind, body",
    [
        ("<?xml version=\"1.0\"?>", TagType.INSTR, "xml version=\"1.0\""),
        ("<!-- note -->", TagType.COMMENT, " note "),
        ("<![CDATA[a<b]]>", TagType.CDATA, "a<b"),
        ("<!DOCTYPE html>", TagType.DOCTYPE, " html"),
        ("<!DOCTYPE n [<!ELEMENT n ANY>]>", TagType.DOCTYPE, " n [<!ELEMENT n ANY>"),
    ],
)
def test_parse_special_tags(text, kind, body):
    node = parse_tag(text)
    assert node.tag_type == kind
    assert node.tag == body


@pytest.mark.parametrize("text", ["<!-- a >", "<!DOCTYPE n [<!ELEMENT n ANY>"])
def test_parse_partial(text):
    assert parse_tag(text).tag_type == TagType.PARTIAL


@pytest.mark.parametrize("text", ["a>", "<a", "<a b>", '<a b="x>', "<a b c=\"1\">"])
def test_parse_malformed(text):
    with pytest.raises(XMLSyntaxError):
        parse_tag(text)


def test_parse_attribute_decodes_entities():
    attr = parse_attribute('x = "a &lt; b"')
    assert attr == XMLAttribute("x", "a < b")


def test_parse_attribute_missing_end_quote():
    assert parse_attribute('a="xy').value == "x"


def test_parse_attribute_without_equal():
    with pytest.raises(XMLSyntaxError):
        parse_attribute("novalue")


def test_user_tag_registration_and_parsing():
    index = register_user_tag(TagType.USER + 1, "<#", "#>")
    assert index == 0
    assert registered_user_tag_count() == 1
    assert find_user_tag(TagType.USER + 1).start == "<#"
    assert find_user_tag(TagType.USER + 2) is None
    node = parse_tag("<#payload#>")
    assert node.tag_type == TagType.USER + 1
    assert node.tag == "payload"
    assert unregister_user_tag(index) == 0


@pytest.mark.parametrize(
    "tag_type, start, end",
    [(TagType.TEXT, "<#", "#>"), (TagType.USER, "#", "#>"), (TagType.USER, "<#", "#")],
)
def test_user_tag_invalid(tag_type, start, end):
    with pytest.raises(ValueError):
        register_user_tag(tag_type, start, end)
    assert registered_user_tag_count() == 0


def test_unregister_invalid_index():
    with pytest.raises(IndexError):
        unregister_user_tag(0)


def test_attributes_set_get_remove():
    node = XMLNode(tag="n")
    assert node.set_attribute("a", "1") == 1
    assert node.set_attribute("b", "2") == 2
    assert node.set_attribute("a", "3") == 2
    assert node.get_attribute("a") == "3"
    assert node.get_attribute("zz", "dflt") == "dflt"
    assert node.search_attribute("b") == 1
    assert node.search_attribute("b", 5) == -1
    assert node.remove_attribute(0) == 1
    assert node.search_attribute("a") == -1
    node.remove_all_attributes()
    assert node.attributes == []
    with pytest.raises(IndexError):
        node.remove_attribute(0)
    with pytest.raises(ValueError):
        node.set_attribute("", "x")


def test_inactive_attribute_is_ignored():
    node = XMLNode(tag="n")
    node.set_attribute("a", "1")
    node.attributes[0].active = False
    assert node.search_attribute("a") == -1
    assert node.get_attribute("a", None) is None


def test_set_type():
    node = XMLNode(tag="n")
    node.set_type(TagType.COMMENT)
    assert node.tag_type == TagType.COMMENT
    for bad in (TagType.ERROR, TagType.END, TagType.PARTIAL, TagType.NONE):
        with pytest.raises(ValueError):
            node.set_type(bad)


def test_children_management():
    root = XMLNode(tag="root", tag_type=TagType.SELF)
    kids = [XMLNode(tag=name) for name in ("a", "b", "c")]
    for kid in kids:
        root.add_child(kid)
    assert root.tag_type == TagType.FATHER
    assert all(kid.father is root for kid in kids)
    kids[0].active = False
    assert root.active_children_count() == 2
    assert root.get_child(0) is kids[1]
    assert root.get_child(1) is kids[2]
    with pytest.raises(IndexError):
        root.get_child(2)
    assert root.remove_child(0) == 2
    assert kids[1] not in root.children
    root.remove_child(0)
    root.children[0].active = True
    assert root.remove_child(0) == 0
    assert root.tag_type == TagType.SELF


def test_copy_is_deep():
    root = XMLNode(tag="root", text="body")
    root.set_attribute("k", "v")
    root.add_child(XMLNode(tag="child"))
    dup = root.copy(True)
    assert dup is not root
    assert dup.same_as(root)
    assert dup.text == root.text
    assert dup.children[0].father is dup
    assert dup.children[0] is not root.children[0]
    dup.set_attribute("k", "other")
    assert root.get_attribute("k") == "v"
    assert root.copy(False).children == []


def test_same_as():
    a = parse_tag('<n x="1" y="2">')
    b = parse_tag('<n y="2" x="1">')
    assert a.same_as(b)
    c = parse_tag('<n x="1">')
    assert not a.same_as(c)
    assert not c.same_as(a)
    d = parse_tag('<n x="1" y="3">')
    assert not a.same_as(d)
    assert not a.same_as(parse_tag('<m x="1" y="2">'))


def test_traversal_order():
    root = XMLNode(tag="root")
    a, b, c, d = (XMLNode(tag=name) for name in "abcd")
    root.add_child(a)
    a.add_child(b)
    a.add_child(c)
    root.add_child(d)
    assert a.next_sibling() is d
    assert d.next_sibling() is None
    assert root.next_sibling() is None
    names = []
    node = root.next_node()
    while node is not None:
        names.append(node.tag)
        node = node.next_node()
    assert names == ["a", "b", "c", "d"]