import pytest

from ol_dump_parser.config.enums import SkipReason
from ol_dump_parser.core.decoder import decode_line
from ol_dump_parser.core.exceptions import MalformedLineError, MalformedPayloadError

AUTHOR_LINE = (
    b'"/type/author"\t"/authors/OL1A"\t"3"\t"2008-04-01T00:00:00.000"\t'
    b'{"name": "Mark Twain", "key": "/authors/OL1A"}'
)


def test_decodes_quoted_structural_fields():
    record = decode_line(AUTHOR_LINE, 1)
    assert record.type_key == "/type/author"
    assert record.entity_key == "/authors/OL1A"
    assert record.revision == 3
    assert record.last_modified == "2008-04-01T00:00:00.000"
    assert record.payload == {"name": "Mark Twain", "key": "/authors/OL1A"}

def test_decodes_unquoted_structural_fields():
    record = decode_line(b'/type/work\t/works/OL1W\t7\t2010-01-01T00:00:00\t{"title": "T"}')
    assert (record.type_key, record.entity_key, record.revision) == ("/type/work", "/works/OL1W", 7)

def test_strips_carriage_return():
    record = decode_line(b'/type/work\t/works/OL1W\t1\t2010-01-01\t{"title": "T"}\r')
    assert record.payload == {"title": "T"}

def test_non_object_payload_is_accepted():
    assert decode_line(b"/type/work\t/works/OL1W\t1\t2010-01-01\t[1, 2]").payload == [1, 2]

@pytest.mark.parametrize("line", [
    b"",
    b"/type/author\t/authors/OL1A\t3",
    b'/type/author\t/authors/OL1A\t3\t2008-04-01\t{}\textra',
    b'/type/author /authors/OL1A 3 2008-04-01 {}',
])
def test_wrong_field_count_is_malformed_line(line):
    with pytest.raises(MalformedLineError) as exc_info:
        decode_line(line, 12)
    assert exc_info.value.reason is SkipReason.MALFORMED_LINE
    assert exc_info.value.line_no == 12

@pytest.mark.parametrize("revision", [b"abc", b"-1", b"", b"3.0", b" 3", b"1_000", b"+3", "\u0663".encode("utf-8")])
def test_invalid_revision_is_malformed_line(revision):
    line = b"/type/author\t/authors/OL1A\t" + revision + b'\t2008-04-01\t{"name": "X"}'
    with pytest.raises(MalformedLineError):
        decode_line(line)

def test_invalid_utf8_is_malformed_line():
    with pytest.raises(MalformedLineError):
        decode_line(b'/type/author\t/authors/OL1A\t1\t2008\t{"name": "\xff"}')

def test_unparsable_payload_is_malformed_payload():
    with pytest.raises(MalformedPayloadError) as exc_info:
        decode_line(b'/type/author\t/authors/OL1A\t1\t2008-04-01\t{"name": ', 4)
    assert exc_info.value.reason is SkipReason.MALFORMED_PAYLOAD
    assert "/authors/OL1A" in str(exc_info.value)

def test_bad_revision_takes_precedence_over_bad_payload():
    with pytest.raises(MalformedLineError):
        decode_line(b"/type/author\t/authors/OL1A\tnope\t2008-04-01\t{broken")

def test_deeply_nested_payload_is_malformed_payload():
    line = b"/type/author\t/authors/OL1A\t1\t2008-04-01\t" + b"[" * 100000
    with pytest.raises(MalformedPayloadError) as exc_info:
        decode_line(line, 9)
    assert exc_info.value.line_no == 9
