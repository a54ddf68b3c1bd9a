"""
Defensive accessors over loosely-typed dump payloads.

Payloads are plain JSON trees (dict, list, str, int, float, bool, None) and their shape
varies across revisions. Every accessor checks presence and shape before extracting
and returns None (or nothing) when the value is not what the output schema needs.

Common patterns seen in the dump:
- str OR {"type": "/type/text", "value": "..."}
- [{"author": {"key": "/authors/OL1A"}}] (works) OR [{"key": "/authors/OL1A"}] (editions)
"""
from typing import Any, Iterator, List, Mapping, Optional

PUBLISH_YEAR_DIGITS = 4


def _encodable(text: str) -> bool:
    # JSON escapes can carry lone surrogates such as "\ud800", which UTF-8 cannot hold.
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _usable_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value and _encodable(value) else None


def get_str(payload: Mapping[str, Any], field: str) -> Optional[str]:
    return _usable_str(payload.get(field))


def get_str_list(payload: Mapping[str, Any], field: str) -> Optional[List[str]]:
    """Returns the string items of a list field in order; other items are dropped."""
    value = payload.get(field)
    if not isinstance(value, list):
        return None
    items = [item for item in value if isinstance(item, str) and _encodable(item)]
    return items or None


def get_text(payload: Mapping[str, Any], field: str) -> Optional[str]:
    """Flattens a text field that is either a plain string or a typed text object."""
    value = payload.get(field)
    if isinstance(value, dict):
        value = value.get("value")
    return _usable_str(value)


def get_non_negative_int(payload: Mapping[str, Any], field: str) -> Optional[int]:
    value = payload.get(field)
    # bool is an int subclass; a page count of True is not a page count.
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def get_nested_str_list(payload: Mapping[str, Any], *path: str) -> Optional[List[str]]:
    """Follows a chain of object fields and reads the final one as a string list."""
    node: Any = payload
    for field in path[:-1]:
        node = node.get(field) if isinstance(node, dict) else None
    if not isinstance(node, dict):
        return None
    return get_str_list(node, path[-1])


def _reference_key(entry: Any) -> Optional[str]:
    if not isinstance(entry, dict):
        return None
    target = entry.get("author")
    if isinstance(target, dict):
        entry = target
    return _usable_str(entry.get("key"))


def iter_reference_keys(payload: Mapping[str, Any], field: str) -> Iterator[str]:
    """
    Yields referenced keys from a list of reference objects, in payload order.

    Both `{"author": {"key": ...}}` and `{"key": ...}` entries are understood. A key
    repeated by consecutive entries is yielded once; repeats further apart are kept.
    """
    entries = payload.get(field)
    if not isinstance(entries, list):
        return
    previous = None
    for entry in entries:
        key = _reference_key(entry)
        if key is None:
            previous = None
            continue
        if key == previous:
            continue
        previous = key
        yield key


def parse_publish_year(date: Optional[str]) -> Optional[int]:
    """Reads the year from the trailing digits of a free-form date such as 'March 3, 1998'."""
    if not date or len(date) < PUBLISH_YEAR_DIGITS:
        return None
    tail = date[-PUBLISH_YEAR_DIGITS:]
    return int(tail) if tail.isascii() and tail.isdigit() else None
