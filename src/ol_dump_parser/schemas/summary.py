"""Run counters reported by the pipeline driver."""
from typing import Dict

from pydantic import BaseModel, Field

from ol_dump_parser.config.enums import RecordKind, SkipReason


class PipelineSummary(BaseModel):
    lines_read: int = 0
    skipped: Dict[SkipReason, int] = Field(default_factory=lambda: {reason: 0 for reason in SkipReason})
    emitted: Dict[RecordKind, int] = Field(default_factory=lambda: {kind: 0 for kind in RecordKind})
    aborted: bool = False

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())

    @property
    def total_emitted(self) -> int:
        return sum(self.emitted.values())

    def record_skip(self, reason: SkipReason) -> None:
        self.skipped[reason] = self.skipped.get(reason, 0) + 1

    def record_emit(self, kind: RecordKind) -> None:
        self.emitted[kind] = self.emitted.get(kind, 0) + 1

    def merge(self, other: "PipelineSummary") -> None:
        """Adds another summary's counters into this one (used for per-batch worker results)."""
        self.lines_read += other.lines_read
        for reason, count in other.skipped.items():
            self.skipped[reason] = self.skipped.get(reason, 0) + count
        for kind, count in other.emitted.items():
            self.emitted[kind] = self.emitted.get(kind, 0) + count
