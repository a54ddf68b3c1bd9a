# src/ol_dump_parser/core/output_generator.py
"""
Step 5: ndjson Emitter

Serializes normalized records as one JSON object per line onto a byte sink. The
emitter is the only writer of its sink: every line goes out in a single locked write.
"""
import logging
import threading
from typing import BinaryIO

from ol_dump_parser.core.exceptions import OutputGenerationError
from ol_dump_parser.schemas.records import NormalizedRecord

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_EVERY = 1000
LINE_TERMINATOR = b"\n"


def encode_record(record: NormalizedRecord) -> bytes:
    """Encodes a record as compact UTF-8 JSON, omitting absent optional fields."""
    return record.model_dump_json(exclude_none=True).encode("utf-8")


class NdjsonEmitter:
    """Writes newline-terminated JSON lines to `sink`, flushing every `flush_every` lines."""

    def __init__(self, sink: BinaryIO, flush_every: int = DEFAULT_FLUSH_EVERY):
        self._sink = sink
        self._flush_every = max(1, flush_every)
        self._lock = threading.Lock()
        self.lines_written = 0

    def emit(self, record: NormalizedRecord) -> None:
        self.write_line(encode_record(record))

    def write_line(self, encoded: bytes) -> None:
        """Writes one pre-encoded JSON object; the terminator is appended here."""
        with self._lock:
            try:
                self._sink.write(encoded + LINE_TERMINATOR)
                self.lines_written += 1
                if self.lines_written % self._flush_every == 0:
                    self._sink.flush()
            except (OSError, ValueError) as e:
                raise OutputGenerationError(f"Failed to write output line {self.lines_written + 1}: {e}") from e

    def flush(self) -> None:
        with self._lock:
            try:
                self._sink.flush()
            except (OSError, ValueError) as e:
                raise OutputGenerationError(f"Failed to flush output: {e}") from e
