"""
Step 6: Pipeline Driver

Runs decompression -> splitting -> decoding -> normalization -> emission as one pass.
Per-record problems are counted in a PipelineSummary and never stop the pass; a
corrupt compressed stream aborts it.
"""
import logging
from concurrent.futures import FIRST_COMPLETED, Future, ProcessPoolExecutor, wait
from typing import BinaryIO, Dict, Iterator, List, Optional, Set, Tuple

from ol_dump_parser.config.enums import EditionPolicy, Framing, RecordKind, SkipReason
from ol_dump_parser.config.type_registry import build_type_handlers
from ol_dump_parser.core.decoder import decode_line
from ol_dump_parser.core.exceptions import CorruptStreamError, RecordSkipped
from ol_dump_parser.core.ingestion import DecompressionReader
from ol_dump_parser.core.normalizer import Handler, normalize_record
from ol_dump_parser.core.output_generator import NdjsonEmitter, encode_record
from ol_dump_parser.core.splitter import DEFAULT_CHUNK_SIZE, stream_split_lines
from ol_dump_parser.schemas.summary import PipelineSummary

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5000
IN_FLIGHT_BATCHES_PER_WORKER = 2

# Expected, high-volume skips are not worth a warning.
_QUIET_SKIP_REASONS = {SkipReason.UNRECOGNIZED_TYPE, SkipReason.MISSING_REQUIRED_FIELD}


def process_line(line: bytes, line_no: int, handlers: Dict[str, Handler], summary: PipelineSummary) -> Optional[bytes]:
    """Decodes and normalizes one line. Returns the encoded output line, or None if skipped."""
    summary.lines_read += 1
    try:
        record = normalize_record(decode_line(line, line_no), handlers)
    except RecordSkipped as e:
        summary.record_skip(e.reason)
        if e.reason in _QUIET_SKIP_REASONS:
            logger.debug(f"Line {line_no}: skipped ({e.reason.value}): {e}")
        else:
            logger.warning(f"{e} Skipping.")
        return None
    summary.record_emit(RecordKind(record.kind))
    return encode_record(record)


def _process_batch(first_line_no: int, lines: List[bytes], edition_policy: EditionPolicy) -> Tuple[List[bytes], PipelineSummary]:
    """Worker function for parallel processing: decodes and normalizes one batch of lines."""
    handlers = build_type_handlers(edition_policy)
    summary = PipelineSummary()
    encoded: List[bytes] = []
    for offset, line in enumerate(lines):
        out = process_line(line, first_line_no + offset, handlers, summary)
        if out is not None:
            encoded.append(out)
    return encoded, summary


def _run_serial(lines: Iterator[bytes], emitter: NdjsonEmitter, edition_policy: EditionPolicy, summary: PipelineSummary) -> None:
    handlers = build_type_handlers(edition_policy)
    for line_no, line in enumerate(lines, start=1):
        out = process_line(line, line_no, handlers, summary)
        if out is not None:
            emitter.write_line(out)


def _run_parallel(
    lines: Iterator[bytes],
    emitter: NdjsonEmitter,
    edition_policy: EditionPolicy,
    summary: PipelineSummary,
    workers: int,
    batch_size: int,
) -> None:
    """Fans batches out to a process pool. Output order across batches is not preserved."""
    max_in_flight = workers * IN_FLIGHT_BATCHES_PER_WORKER
    in_flight: Set[Future] = set()

    def _collect(done: Set[Future]) -> None:
        for future in done:
            encoded, batch_summary = future.result()
            for out in encoded:
                emitter.write_line(out)
            summary.merge(batch_summary)

    with ProcessPoolExecutor(max_workers=workers) as executor:

        def _submit(first_line_no: int, batch: List[bytes]) -> None:
            nonlocal in_flight
            in_flight.add(executor.submit(_process_batch, first_line_no, batch, edition_policy))
            if len(in_flight) >= max_in_flight:
                done, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
                _collect(done)

        batch: List[bytes] = []
        first_line_no = 1
        fatal: Optional[CorruptStreamError] = None
        try:
            for line_no, line in enumerate(lines, start=1):
                if not batch:
                    first_line_no = line_no
                batch.append(line)
                if len(batch) >= batch_size:
                    _submit(first_line_no, batch)
                    batch = []
        except CorruptStreamError as e:
            fatal = e

        # Lines read before a failure are still processed and written.
        if batch:
            _submit(first_line_no, batch)
        if in_flight:
            done, _ = wait(in_flight)
            _collect(done)
        if fatal is not None:
            raise fatal


def run_pipeline(
    source: BinaryIO,
    sink: BinaryIO,
    *,
    framing: Framing = Framing.AUTO,
    edition_policy: EditionPolicy = EditionPolicy.SKIP,
    workers: int = 1,
    batch_size: int = DEFAULT_BATCH_SIZE,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> PipelineSummary:
    """
    Streams a dump from `source` to ndjson on `sink` and returns the run summary.

    Args:
        source: Byte source, or an already-open DecompressionReader.
        sink: Writable byte sink for the ndjson output.
        framing: Compression framing of `source` (ignored for a DecompressionReader).
        edition_policy: Whether edition records are emitted as books.
        workers: 1 for the single-threaded pass; more fans batches out to processes.
        batch_size: Lines per worker batch in parallel mode.
        chunk_size: Bytes requested per read from the decompressed stream.

    Raises:
        CorruptStreamError: the compressed stream is invalid. Its `summary` holds the
            counters collected before the failure.
        OutputGenerationError: the sink could not be written.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    reader = source if isinstance(source, DecompressionReader) else DecompressionReader(source, framing)
    emitter = NdjsonEmitter(sink)
    summary = PipelineSummary()
    lines = stream_split_lines(reader, chunk_size)

    logger.info(
        f"Running pipeline ({'serial' if workers <= 1 else f'parallel, {workers} workers'}, "
        f"edition policy '{edition_policy.value}')."
    )
    try:
        if workers <= 1:
            _run_serial(lines, emitter, edition_policy, summary)
        else:
            _run_parallel(lines, emitter, edition_policy, summary, workers, batch_size)
    except CorruptStreamError as e:
        summary.aborted = True
        e.summary = summary
        logger.error(f"Input stream is corrupt after {summary.lines_read} lines: {e}")
        raise
    finally:
        emitter.flush()

    _log_summary(summary)
    return summary


def _log_summary(summary: PipelineSummary) -> None:
    logger.info(f"Read {summary.lines_read} lines, emitted {summary.total_emitted} records, skipped {summary.total_skipped}.")
    for kind, count in summary.emitted.items():
        logger.info(f"  - emitted {kind.value}: {count}")
    for reason, count in summary.skipped.items():
        logger.info(f"  - skipped {reason.value}: {count}")
