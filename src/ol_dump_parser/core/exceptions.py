"""This module defines custom, specific exceptions for the dump parser application."""
from ol_dump_parser.config.enums import SkipReason


class DumpParserError(Exception):
    """Base exception class for all errors raised by this parser."""
    pass
class FileIngestionError(DumpParserError):
    """Raised when the input dump cannot be found or opened."""
    pass
class CorruptStreamError(DumpParserError):
    """Raised when the compression framing is invalid or truncated. Always fatal.

    The pipeline driver attaches the summary collected up to the failure as `summary`.
    """
    summary = None
class OutputGenerationError(DumpParserError):
    """Raised when writing to the output sink fails."""
    pass


class RecordSkipped(DumpParserError):
    """Base class for per-record conditions. The record is counted and dropped, never fatal."""
    reason: SkipReason

    def __init__(self, message: str, line_no: int = 0):
        super().__init__(message)
        self.line_no = line_no
class MalformedLineError(RecordSkipped):
    """Raised for a wrong column count, bad encoding or an unparsable revision."""
    reason = SkipReason.MALFORMED_LINE
class MalformedPayloadError(RecordSkipped):
    """Raised when the payload column is not a parseable JSON value."""
    reason = SkipReason.MALFORMED_PAYLOAD
class UnrecognizedTypeError(RecordSkipped):
    """Raised when the record type is outside the allow-list."""
    reason = SkipReason.UNRECOGNIZED_TYPE
class MissingRequiredFieldError(RecordSkipped):
    """Raised when a recognized record lacks its required name or title."""
    reason = SkipReason.MISSING_REQUIRED_FIELD
