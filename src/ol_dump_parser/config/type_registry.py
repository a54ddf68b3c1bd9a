"""Builds the closed type allow-list used by the dispatcher. Unlisted types are always skipped."""
from functools import lru_cache
from typing import Dict, Tuple

from ol_dump_parser.config.enums import EditionPolicy, TypeKey
from ol_dump_parser.core.normalizer import TYPE_NORMALIZERS, Handler

# Which edition policies enable each extracted type.
TYPE_POLICIES: Dict[TypeKey, Tuple[EditionPolicy, ...]] = {
    TypeKey.AUTHOR: tuple(EditionPolicy),
    TypeKey.WORK: tuple(EditionPolicy),
    TypeKey.EDITION: (EditionPolicy.BOOK,),
}


@lru_cache(maxsize=None)
def build_type_handlers(edition_policy: EditionPolicy = EditionPolicy.SKIP) -> Dict[str, Handler]:
    """Returns the literal type_key -> normalizer mapping enabled under `edition_policy`."""
    return {
        type_key.value: TYPE_NORMALIZERS[type_key]
        for type_key, policies in TYPE_POLICIES.items()
        if edition_policy in policies
    }
