"""Step 2: Split the decompressed byte stream into raw record lines (Streaming)"""
import logging
from typing import Iterator, List, Protocol

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB
LINE_DELIMITER = b"\n"


class ByteReader(Protocol):
    def read(self, size: int = -1) -> bytes: ...


def stream_split_lines(reader: ByteReader, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """
    Lazily yields newline-delimited lines (without the delimiter) from a byte reader.

    A final line with no trailing newline is still yielded. An empty read marks a clean
    end of stream. Line content is not interpreted.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    # Pieces of a line that has not been terminated yet.
    pending: List[bytes] = []
    lines_yielded = 0
    while True:
        chunk = reader.read(chunk_size)
        if not chunk:
            break
        start = 0
        while True:
            end = chunk.find(LINE_DELIMITER, start)
            if end < 0:
                if start < len(chunk):
                    pending.append(chunk[start:])
                break
            piece = chunk[start:end]
            if pending:
                pending.append(piece)
                piece = b"".join(pending)
                pending = []
            lines_yielded += 1
            yield piece
            start = end + 1

    if pending:
        lines_yielded += 1
        yield b"".join(pending)
    logger.debug(f"Split {lines_yielded} lines from the input stream.")
