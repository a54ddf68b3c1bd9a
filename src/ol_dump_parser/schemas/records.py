"""
This module defines the Pydantic models for one dump line (RawRecord) and for the
normalized output records. The output models are the single source of truth for the
ndjson contract: field order here is key order on the wire.
"""
from typing import Any, List, Literal, Optional, Type, Union
from pydantic import BaseModel, Field, ValidationError, field_validator

from ol_dump_parser.core.exceptions import MalformedLineError


class RawRecord(BaseModel):
    type_key: str
    entity_key: str
    revision: int = Field(ge=0)
    last_modified: str
    payload: Any = None

    @field_validator("revision", mode="before")
    @classmethod
    def revision_is_digits(cls, value: Any) -> Any:
        # Lax int coercion would accept "3.0", " 3", "+3" and "1_000".
        if isinstance(value, str) and not (value.isascii() and value.isdigit()):
            raise ValueError(f"revision must be a non-negative integer, got {value!r}")
        return value

    @classmethod
    def from_fields(cls: Type["RawRecord"], positional_values: List[Any], line_no: int = 0) -> "RawRecord":
        field_names = list(cls.model_fields.keys())
        if len(positional_values) != len(field_names):
            raise MalformedLineError(
                f"Line {line_no}: expected {len(field_names)} tab-separated fields, got {len(positional_values)}.",
                line_no,
            )
        try:
            return cls.model_validate(dict(zip(field_names, positional_values)))
        except ValidationError as e:
            raise MalformedLineError(f"Line {line_no}: invalid structural fields: {e.errors()[0]['msg']}", line_no) from e


class AuthorRecord(BaseModel):
    kind: Literal["author"] = "author"
    key: str
    name: str
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    alternate_names: Optional[List[str]] = None


class BookRecord(BaseModel):
    kind: Literal["book"] = "book"
    key: str
    title: str
    author_keys: Optional[List[str]] = None
    first_publish_date: Optional[str] = None
    subjects: Optional[List[str]] = None
    description: Optional[str] = None
    # Carried from edition payloads; also filled from works when present.
    subtitle: Optional[str] = None
    publish_year: Optional[int] = None
    number_of_pages: Optional[int] = None
    publishers: Optional[List[str]] = None
    physical_format: Optional[str] = None
    goodreads_ids: Optional[List[str]] = None
    work_keys: Optional[List[str]] = None


NormalizedRecord = Union[AuthorRecord, BookRecord]
