import io
import json
import threading

import pytest

from ol_dump_parser.core.exceptions import OutputGenerationError
from ol_dump_parser.core.output_generator import NdjsonEmitter, encode_record
from ol_dump_parser.schemas.records import AuthorRecord, BookRecord


def test_author_line_is_compact_and_newline_terminated():
    sink = io.BytesIO()
    emitter = NdjsonEmitter(sink)
    emitter.emit(AuthorRecord(key="/authors/OL1A", name="Mark Twain"))
    emitter.flush()
    assert sink.getvalue() == b'{"kind":"author","key":"/authors/OL1A","name":"Mark Twain"}\n'

def test_absent_optional_fields_are_omitted():
    line = encode_record(BookRecord(key="/works/OL1W", title="Huckleberry Finn"))
    assert json.loads(line) == {"kind": "book", "key": "/works/OL1W", "title": "Huckleberry Finn"}

def test_non_ascii_is_written_as_utf8():
    line = encode_record(AuthorRecord(key="/authors/OL2A", name="Lev Tolstoï"))
    assert "Tolstoï" in line.decode("utf-8")
    assert json.loads(line)["name"] == "Lev Tolstoï"

def test_flushes_every_n_lines(mocker):
    sink = mocker.MagicMock()
    emitter = NdjsonEmitter(sink, flush_every=2)
    for _ in range(5):
        emitter.write_line(b"{}")
    assert sink.write.call_count == 5
    assert sink.flush.call_count == 2
    sink.write.assert_called_with(b"{}\n")

def test_write_failure_raises_output_error(mocker):
    sink = mocker.MagicMock()
    sink.write.side_effect = OSError("No space left on device")
    emitter = NdjsonEmitter(sink)
    with pytest.raises(OutputGenerationError):
        emitter.emit(AuthorRecord(key="/authors/OL1A", name="Mark Twain"))

def test_concurrent_writers_do_not_interleave_lines():
    sink = io.BytesIO()
    emitter = NdjsonEmitter(sink)

    def _write(worker_id):
        for i in range(200):
            emitter.emit(AuthorRecord(key=f"/authors/OL{worker_id}_{i}A", name="x" * 50))

    threads = [threading.Thread(target=_write, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    lines = sink.getvalue().splitlines()
    assert len(lines) == 800
    assert all(json.loads(line)["kind"] == "author" for line in lines)
