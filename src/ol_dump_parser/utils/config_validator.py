import logging
from ol_dump_parser.config.enums import EditionPolicy, RecordKind, SkipReason, TypeKey
from ol_dump_parser.config.type_registry import TYPE_POLICIES, build_type_handlers
from ol_dump_parser.core.exceptions import RecordSkipped
from ol_dump_parser.core.normalizer import TYPE_NORMALIZERS
from ol_dump_parser.schemas.records import AuthorRecord, BookRecord
from ol_dump_parser.schemas.summary import PipelineSummary

logger = logging.getLogger(__name__)

def _all_subclasses(cls):
    for sub in cls.__subclasses__():
        yield sub
        yield from _all_subclasses(sub)

def validate_configurations():
    """Checks that the type allow-list, the normalizers, the skip taxonomy and the summary counters agree."""
    type_keys = set(TypeKey)
    normalizer_keys = set(TYPE_NORMALIZERS.keys())
    policy_keys = set(TYPE_POLICIES.keys())

    assert normalizer_keys == type_keys, f"Mismatch between TypeKey and normalizers:\nOnly in TypeKey: {type_keys - normalizer_keys}\nOnly in normalizers: {normalizer_keys - type_keys}"
    assert policy_keys == type_keys, f"Types without an edition policy entry: {type_keys - policy_keys}"
    for policy in EditionPolicy:
        handlers = build_type_handlers(policy)
        assert {TypeKey.AUTHOR.value, TypeKey.WORK.value} <= set(handlers), f"Policy '{policy.value}' does not extract authors and works."

    skip_reasons = {sub.reason for sub in _all_subclasses(RecordSkipped) if hasattr(sub, "reason")}
    assert skip_reasons == set(SkipReason), f"SkipReason values without an exception class: {set(SkipReason) - skip_reasons}"

    summary = PipelineSummary()
    assert set(summary.skipped) == set(SkipReason), "PipelineSummary does not count every SkipReason."
    assert set(summary.emitted) == set(RecordKind), "PipelineSummary does not count every RecordKind."
    output_kinds = {AuthorRecord.model_fields["kind"].default, BookRecord.model_fields["kind"].default}
    assert output_kinds == {kind.value for kind in RecordKind}, f"Output record kinds {output_kinds} do not match RecordKind."

    logger.info("Configuration validation successful: type registry, skip taxonomy and counters are consistent.")
