"""Step 1: Decompression Reader

Wraps an opaque byte source and exposes the uncompressed dump content through an
incremental `read(size)`. Decompression never inflates the whole stream at once.
"""
import gzip
import logging
import sys
import zlib
from typing import BinaryIO, Optional

from ol_dump_parser.config.enums import Framing
from ol_dump_parser.core.exceptions import CorruptStreamError, FileIngestionError

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

# gzip raises these for bad headers, bad deflate blocks and members cut short.
_FRAMING_ERRORS = (gzip.BadGzipFile, EOFError, zlib.error)


class _PrefixedStream:
    """Replays bytes already consumed while sniffing, then continues with the source."""

    def __init__(self, prefix: bytes, source: BinaryIO):
        self._prefix = prefix
        self._source = source

    def read(self, size: int = -1) -> bytes:
        if not self._prefix:
            return self._source.read(size)
        if size is None or size < 0:
            data, self._prefix = self._prefix + self._source.read(), b""
            return data
        data, self._prefix = self._prefix[:size], self._prefix[size:]
        if len(data) < size:
            data += self._source.read(size - len(data))
        return data

    def close(self) -> None:
        self._source.close()


def _read_exactly(source: BinaryIO, size: int) -> bytes:
    """Reads up to `size` bytes, looping over short reads from pipes."""
    parts = []
    remaining = size
    while remaining > 0:
        chunk = source.read(remaining)
        if not chunk:
            break
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)


class DecompressionReader:
    """Sequential reader over the uncompressed content of a dump stream."""

    def __init__(self, source: BinaryIO, framing: Framing = Framing.AUTO):
        self._source = source
        stream = source
        if framing is Framing.AUTO:
            head = _read_exactly(source, len(GZIP_MAGIC))
            framing = Framing.GZIP if head == GZIP_MAGIC else Framing.PLAIN
            stream = _PrefixedStream(head, source)
        self.framing = framing
        logger.debug(f"Reading dump with '{framing.value}' framing.")

        self._gzip: Optional[gzip.GzipFile] = None
        if framing is Framing.GZIP:
            self._gzip = gzip.GzipFile(fileobj=stream, mode="rb")
            self._stream = self._gzip
        else:
            self._stream = stream

    def read(self, size: int = -1) -> bytes:
        try:
            return self._stream.read(size)
        except _FRAMING_ERRORS as e:
            raise CorruptStreamError(f"Compressed input is invalid or truncated: {e}") from e

    def close(self) -> None:
        if self._gzip is not None:
            self._gzip.close()
        self._source.close()

    def __enter__(self) -> "DecompressionReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def resolve_framing(path: str, framing: Framing) -> Framing:
    """AUTO framing resolves to gzip for a '.gz' path; other AUTO inputs are sniffed when read."""
    if framing is Framing.AUTO and path.endswith(".gz"):
        return Framing.GZIP
    return framing


def open_dump(path: str, framing: Framing = Framing.AUTO) -> DecompressionReader:
    """
    Opens a dump file (or '-' for stdin) for streaming decompression.

    Args:
        path: Filesystem path of the dump, or '-' to read standard input.
        framing: Compression framing. AUTO picks gzip for a '.gz' suffix and
            otherwise sniffs the magic bytes.

    Returns:
        A DecompressionReader positioned at the start of the dump.
    """
    if path == "-":
        logger.info("Reading dump from standard input.")
        return DecompressionReader(sys.stdin.buffer, framing)

    framing = resolve_framing(path, framing)
    logger.info(f"Opening dump file: {path}")
    try:
        source = open(path, "rb")
    except OSError as e:
        raise FileIngestionError(f"Failed to open dump file {path}: {e}") from e
    return DecompressionReader(source, framing)
