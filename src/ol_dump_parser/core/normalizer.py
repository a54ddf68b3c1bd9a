"""Step 4: Type Dispatch & Normalization

Maps each RawRecord onto an AuthorRecord or BookRecord through the compiled-in type
allow-list. Anything else is skipped by raising a RecordSkipped subclass.
"""
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from ol_dump_parser.config.enums import TypeKey
from ol_dump_parser.core import payload as fields
from ol_dump_parser.core.exceptions import MissingRequiredFieldError, UnrecognizedTypeError
from ol_dump_parser.schemas.records import AuthorRecord, BookRecord, NormalizedRecord, RawRecord

logger = logging.getLogger(__name__)

Handler = Callable[[RawRecord], NormalizedRecord]


def _require_mapping(record: RawRecord, required_field: str) -> Mapping[str, Any]:
    if not isinstance(record.payload, dict):
        raise MissingRequiredFieldError(
            f"{record.type_key} {record.entity_key}: payload is not an object, no '{required_field}'."
        )
    return record.payload


def _require_str(record: RawRecord, payload: Mapping[str, Any], field: str) -> str:
    value = fields.get_str(payload, field)
    if value is None:
        raise MissingRequiredFieldError(f"{record.type_key} {record.entity_key}: missing '{field}'.")
    return value


def _keys_or_none(keys: List[str]) -> Optional[List[str]]:
    return keys or None


def normalize_author(record: RawRecord) -> AuthorRecord:
    payload = _require_mapping(record, "name")
    return AuthorRecord(
        key=record.entity_key,
        name=_require_str(record, payload, "name"),
        birth_date=fields.get_str(payload, "birth_date"),
        death_date=fields.get_str(payload, "death_date"),
        alternate_names=fields.get_str_list(payload, "alternate_names"),
    )


def normalize_work(record: RawRecord) -> BookRecord:
    payload = _require_mapping(record, "title")
    first_publish_date = fields.get_str(payload, "first_publish_date")
    return BookRecord(
        key=record.entity_key,
        title=_require_str(record, payload, "title"),
        author_keys=_keys_or_none(list(fields.iter_reference_keys(payload, "authors"))),
        first_publish_date=first_publish_date,
        subjects=fields.get_str_list(payload, "subjects"),
        description=fields.get_text(payload, "description"),
        subtitle=fields.get_str(payload, "subtitle"),
        publish_year=fields.parse_publish_year(first_publish_date),
    )


def normalize_edition(record: RawRecord) -> BookRecord:
    """Folds an edition into a book. Its publish_date stands in for the first publish date."""
    payload = _require_mapping(record, "title")
    publish_date = fields.get_str(payload, "publish_date")
    return BookRecord(
        key=record.entity_key,
        title=_require_str(record, payload, "title"),
        author_keys=_keys_or_none(list(fields.iter_reference_keys(payload, "authors"))),
        first_publish_date=publish_date,
        subjects=fields.get_str_list(payload, "subjects"),
        description=fields.get_text(payload, "description"),
        subtitle=fields.get_str(payload, "subtitle"),
        publish_year=fields.parse_publish_year(publish_date),
        number_of_pages=fields.get_non_negative_int(payload, "number_of_pages"),
        publishers=fields.get_str_list(payload, "publishers"),
        physical_format=fields.get_str(payload, "physical_format"),
        goodreads_ids=fields.get_nested_str_list(payload, "identifiers", "goodreads"),
        work_keys=_keys_or_none(list(fields.iter_reference_keys(payload, "works"))),
    )


TYPE_NORMALIZERS: Dict[TypeKey, Handler] = {
    TypeKey.AUTHOR: normalize_author,
    TypeKey.WORK: normalize_work,
    TypeKey.EDITION: normalize_edition,
}


def normalize_record(record: RawRecord, handlers: Dict[str, Handler]) -> NormalizedRecord:
    """
    Dispatches a record on its literal type key.

    Raises:
        UnrecognizedTypeError: the type is not in `handlers`.
        MissingRequiredFieldError: the handler found no name/title.
    """
    handler = handlers.get(record.type_key)
    if handler is None:
        raise UnrecognizedTypeError(f"{record.entity_key}: type '{record.type_key}' is not extracted.")
    return handler(record)
