"""Step 3: Decode one raw dump line into a RawRecord"""
import json
import logging
from typing import Any

from ol_dump_parser.schemas.records import RawRecord
from ol_dump_parser.core.exceptions import MalformedLineError, MalformedPayloadError

logger = logging.getLogger(__name__)

FIELD_DELIMITER = "\t"
QUOTE = '"'


def _unquote(field: str) -> str:
    """Removes CSV-style double quotes around a structural field, if present."""
    if len(field) >= 2 and field[0] == QUOTE and field[-1] == QUOTE:
        return field[1:-1].replace(QUOTE * 2, QUOTE)
    return field


def decode_line(line: bytes, line_no: int = 0) -> RawRecord:
    """
    Splits a raw line into the five dump columns and parses the JSON payload.

    Raises:
        MalformedLineError: bad encoding, wrong column count or invalid revision.
        MalformedPayloadError: the payload column is not valid JSON.
    """
    try:
        text = line.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedLineError(f"Line {line_no}: not valid UTF-8 ({e.reason}).", line_no) from e
    if text.endswith("\r"):
        text = text[:-1]

    fields = text.split(FIELD_DELIMITER)
    if len(fields) != len(RawRecord.model_fields):
        raise MalformedLineError(
            f"Line {line_no}: expected {len(RawRecord.model_fields)} tab-separated fields, got {len(fields)}.",
            line_no,
        )

    *structural, raw_payload = fields
    structural = [_unquote(f) for f in structural]

    payload_error = None
    payload: Any = None
    try:
        payload = json.loads(raw_payload)
    except (ValueError, RecursionError) as e:
        # Deeply nested payloads exhaust the recursion limit rather than failing to parse.
        payload_error = e

    # Structural validation runs first so a bad revision is reported as a malformed line.
    record = RawRecord.from_fields([*structural, payload], line_no)
    if payload_error is not None:
        raise MalformedPayloadError(
            f"Line {line_no}: unparsable payload for {record.type_key} {record.entity_key} "
            f"(revision {record.revision}): {payload_error}",
            line_no,
        ) from payload_error
    return record
