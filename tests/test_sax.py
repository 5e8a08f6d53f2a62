import pytest

from smallxml.node import TagType
from smallxml.sax import (
    ParseErrorKind,
    SAXData,
    SAXHandler,
    XMLEvent,
    parse_buffer_sax,
    parse_file_sax,
)


class Recorder(SAXHandler):
    def __init__(self, stop_on=None, start_doc_result=True, end_doc_result=True):
        self.calls = []
        self.errors = []
        self.texts = []
        self.nodes = []
        self.stop_on = stop_on
        self.start_doc_result = start_doc_result
        self.end_doc_result = end_doc_result
        self.sd = None

    def start_doc(self, sd):
        self.calls.append("start_doc")
        self.sd = sd
        return self.start_doc_result

    def start_node(self, node, sd):
        self.calls.append(("start", node.tag, sd.line_num))
        self.nodes.append(node)
        return node.tag != self.stop_on

    def end_node(self, node, sd):
        self.calls.append(("end", node.tag, sd.line_num))
        return True

    def new_text(self, text, sd):
        self.texts.append(text)
        self.calls.append(("text", text))
        return True

    def on_error(self, error, line, sd):
        self.errors.append(error)
        return True

    def end_doc(self, sd):
        self.calls.append("end_doc")
        return self.end_doc_result


class EventRecorder(SAXHandler):
    def __init__(self):
        self.events = []

    def all_event(self, event, node, text, n, sd):
        self.events.append((event, node.tag if node is not None else None, text, n))
        return True


def test_simple_document_callbacks_in_order():
    rec = Recorder()
    assert parse_buffer_sax('<a x="1"><b/>hi</a>', "buf", rec) is True
    assert rec.calls == [
        "start_doc",
        ("start", "a", 1),
        ("start", "b", 1),
        ("end", "b", 1),
        ("text", "hi"),
        ("end", "a", 1),
        "end_doc",
    ]


def test_attributes_are_available_on_start():
    rec = Recorder()
    parse_buffer_sax('<a x="1" y=\'two\'/>', "buf", rec)
    node = rec.nodes[0]
    assert node.get_attribute("x") == "1"
    assert node.get_attribute("y") == "two"
    assert node.tag_type == TagType.SELF


def test_line_numbers_follow_newlines():
    rec = Recorder()
    parse_buffer_sax("<a>\n<b/>\n</a>", "buf", rec)
    lines = {(c[0], c[1]): c[2] for c in rec.calls if isinstance(c, tuple) and c[0] != "text"}
    assert lines[("start", "a")] == 1
    assert lines[("start", "b")] == 2
    assert lines[("end", "a")] == 3


def test_all_event_sequence():
    rec = EventRecorder()
    assert parse_buffer_sax("<a>t</a>", "doc", rec) is True
    kinds = [e[0] for e in rec.events]
    assert kinds == [
        XMLEvent.START_DOC,
        XMLEvent.START_NODE,
        XMLEvent.TEXT,
        XMLEvent.END_NODE,
        XMLEvent.END_DOC,
    ]
    assert rec.events[0][2] == "doc"
    assert rec.events[0][3] == 0
    assert rec.events[2][2] == "t"


def test_sax_data_carries_name_and_user():
    rec = Recorder()
    marker = object()
    parse_buffer_sax("<a/>", "name", rec, marker)
    assert isinstance(rec.sd, SAXData)
    assert rec.sd.name == "name"
    assert rec.sd.user is marker


def test_unexpected_tag_end():
    rec = Recorder()
    assert parse_buffer_sax("abc>", "buf", rec) is False
    assert rec.errors == [ParseErrorKind.UNEXPECTED_TAG_END]
    assert rec.calls[-1] == "end_doc"


def test_greater_than_inside_text_is_tolerated():
    rec = Recorder()
    assert parse_buffer_sax("<a>1 > 0</a>", "buf", rec) is True
    assert rec.texts == ["1 > 0"]
    assert rec.errors == []


def test_comment_containing_greater_than():
    rec = Recorder()
    assert parse_buffer_sax("<!-- a > b -->", "buf", rec) is True
    node = rec.nodes[0]
    assert node.tag_type == TagType.COMMENT
    assert node.tag == " a > b "


def test_unterminated_comment_reports_eof():
    rec = Recorder()
    assert parse_buffer_sax("<!-- a > b", "buf", rec) is False
    assert rec.errors == [ParseErrorKind.EOF]


def test_syntax_error_in_attributes():
    rec = Recorder()
    assert parse_buffer_sax("<a b>", "buf", rec) is False
    assert rec.errors == [ParseErrorKind.SYNTAX]


def test_error_event_carries_kind():
    rec = EventRecorder()
    assert parse_buffer_sax("<a b>", "buf", rec) is False
    errors = [e for e in rec.events if e[0] == XMLEvent.ERROR]
    assert errors == [(XMLEvent.ERROR, None, "buf", int(ParseErrorKind.SYNTAX))]


def test_stop_from_start_node():
    rec = Recorder(stop_on="b")
    assert parse_buffer_sax("<a><b/><c/></a>", "buf", rec) is True
    starts = [c[1] for c in rec.calls if isinstance(c, tuple) and c[0] == "start"]
    assert starts == ["a", "b"]
    assert rec.calls[-1] == "end_doc"


def test_start_doc_false_stops_everything():
    rec = Recorder(start_doc_result=False)
    assert parse_buffer_sax("<a/>", "buf", rec) is True
    assert rec.calls == ["start_doc"]


def test_end_doc_false_skips_end_event():
    class Both(Recorder):
        def __init__(self):
            super().__init__(end_doc_result=False)
            self.events = []

        def all_event(self, event, node, text, n, sd):
            self.events.append(event)
            return True

    rec = Both()
    parse_buffer_sax("<a/>", "buf", rec)
    assert XMLEvent.END_DOC not in rec.events
    assert rec.events[0] == XMLEvent.START_DOC


def test_unmatched_end_tag_is_passed_through():
    rec = Recorder()
    assert parse_buffer_sax("</x>", "buf", rec) is True
    assert ("end", "x", 1) in rec.calls
    assert rec.errors == []


def test_leading_spaces_are_text_and_trailing_are_ignored():
    rec = Recorder()
    assert parse_buffer_sax("  <a/>\n\n", "buf", rec) is True
    assert rec.texts == ["  "]
    assert [c for c in rec.calls if isinstance(c, tuple) and c[0] == "start"] == [("start", "a", 1)]


def test_special_tags():
    rec = Recorder()
    parse_buffer_sax('<?xml version="1.0"?><![CDATA[x<y]]><r/>', "buf", rec)
    types = [n.tag_type for n in rec.nodes]
    assert types == [TagType.INSTR, TagType.CDATA, TagType.SELF]
    assert rec.nodes[1].tag == "x<y"


def test_default_handler_reports_to_stderr(capsys):
    assert parse_buffer_sax("<a b>", "f.xml", SAXHandler()) is False
    err = capsys.readouterr().err
    assert "f.xml:1" in err
    assert "SYNTAX" in err


def test_parse_file_with_utf8_bom(tmp_path):
    path = tmp_path / "doc.xml"
    path.write_bytes(b"\xef\xbb\xbf<a>x</a>")
    rec = Recorder()
    assert parse_file_sax(path, rec) is True
    assert rec.texts == ["x"]
    assert rec.sd.name == str(path)


def test_parse_file_utf16(tmp_path):
    path = tmp_path / "doc16.xml"
    path.write_bytes("<a>é</a>".encode("utf-16"))
    rec = Recorder()
    assert parse_file_sax(path, rec) is True
    assert rec.texts == ["é"]
    assert [n.tag for n in rec.nodes] == ["a"]


def test_parse_file_plain_matches_buffer(tmp_path):
    content = '<r k="v">\n\t<c/>\n</r>'
    path = tmp_path / "plain.xml"
    path.write_text(content, encoding="utf-8")
    from_file = Recorder()
    from_buffer = Recorder()
    parse_file_sax(path, from_file)
    parse_buffer_sax(content, "plain", from_buffer)
    assert from_file.calls == from_buffer.calls


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_file_sax(tmp_path / "missing.xml", Recorder())


def test_empty_filename_raises():
    with pytest.raises(ValueError):
        parse_file_sax("", Recorder())