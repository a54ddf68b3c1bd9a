"""This module contains all Enum definitions for the application."""
from enum import Enum


class TypeKey(str, Enum):
    AUTHOR = "/type/author"; WORK = "/type/work"; EDITION = "/type/edition"

class RecordKind(str, Enum):
    AUTHOR = "author"; BOOK = "book"

class SkipReason(str, Enum):
    MALFORMED_LINE = "malformed_line"
    MALFORMED_PAYLOAD = "malformed_payload"
    UNRECOGNIZED_TYPE = "unrecognized_type"
    MISSING_REQUIRED_FIELD = "missing_required_field"

class EditionPolicy(str, Enum):
    """Whether `/type/edition` records are folded into book output."""
    SKIP = "skip"
    BOOK = "book"

class Framing(str, Enum):
    AUTO = "auto"
    GZIP = "gzip"
    PLAIN = "plain"
