import gzip
import json

from typer.testing import CliRunner
from ol_dump_parser.main import app
from ol_dump_parser.core.exceptions import OutputGenerationError

runner = CliRunner()

AUTHOR_LINE = (
    b'"/type/author"\t"/authors/OL1A"\t"3"\t"2008-04-01T00:00:00.000"\t'
    b'{"name": "Mark Twain", "key": "/authors/OL1A"}'
)
REDIRECT_LINE = b'/type/redirect\t/authors/OL9A\t2\t2009-01-01T00:00:00\t{"location": "/authors/OL1A"}'
EDITION_LINE = b'/type/edition\t/books/OL1M\t2\t2010-01-01T00:00:00\t{"title": "Huckleberry Finn"}'


def _write_dump(tmp_path, *lines):
    dump = tmp_path / "ol_dump.txt.gz"
    dump.write_bytes(gzip.compress(b"\n".join(lines) + b"\n"))
    return dump


def test_run_writes_ndjson_file(tmp_path):
    dump = _write_dump(tmp_path, AUTHOR_LINE, REDIRECT_LINE)
    out = tmp_path / "out.ndjson"
    result = runner.invoke(app, ["run", str(dump), "-o", str(out), "--no-progress"])
    assert result.exit_code == 0, result.output
    assert out.read_bytes() == b'{"kind":"author","key":"/authors/OL1A","name":"Mark Twain"}\n'

def test_run_with_progress_bar(tmp_path):
    dump = _write_dump(tmp_path, AUTHOR_LINE)
    out = tmp_path / "out.ndjson"
    result = runner.invoke(app, ["run", str(dump), "--output", str(out)])
    assert result.exit_code == 0, result.output
    assert json.loads(out.read_bytes())["name"] == "Mark Twain"

def test_run_edition_policy_book(tmp_path):
    dump = _write_dump(tmp_path, EDITION_LINE)
    out = tmp_path / "out.ndjson"
    result = runner.invoke(app, ["run", str(dump), "-o", str(out), "--no-progress", "--edition-policy", "book"])
    assert result.exit_code == 0, result.output
    assert json.loads(out.read_bytes()) == {"kind": "book", "key": "/books/OL1M", "title": "Huckleberry Finn"}

def test_corrupt_input_exits_non_zero(tmp_path):
    dump = tmp_path / "ol_dump.txt.gz"
    dump.write_bytes(gzip.compress(AUTHOR_LINE * 500)[:-10])
    result = runner.invoke(app, ["run", str(dump), "-o", str(tmp_path / "out.ndjson"), "--no-progress"])
    assert result.exit_code == 1

def test_missing_input_exits_non_zero(tmp_path):
    result = runner.invoke(app, ["run", str(tmp_path / "nope.txt.gz"), "-o", str(tmp_path / "out.ndjson")])
    assert result.exit_code == 1

def test_output_failure_exits_non_zero(tmp_path, mocker):
    mocker.patch("ol_dump_parser.main.run_pipeline", side_effect=OutputGenerationError("disk full"))
    dump = _write_dump(tmp_path, AUTHOR_LINE)
    result = runner.invoke(app, ["run", str(dump), "-o", str(tmp_path / "out.ndjson"), "--no-progress"])
    assert result.exit_code == 1

def test_cli_invalid_edition_policy_fails():
    """Test that the CLI exits with a usage error for an unknown edition policy."""
    result = runner.invoke(app, ["run", "ol_dump.txt.gz", "--edition-policy", "sometimes"])
    assert result.exit_code != 0

def test_list_types():
    result = runner.invoke(app, ["list-types"])
    assert result.exit_code == 0
    assert "/type/author" in result.stdout
    assert "/type/work" in result.stdout
    assert "/type/edition" in result.stdout
