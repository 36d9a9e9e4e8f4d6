"""
app/domain/persistence.py

Result types for batched metric persistence and ingestion summaries.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from app.domain.transactions import DateRange


@dataclass(frozen=True)
class Batch:
    """
    One contiguous slice ``[start, end)`` of the submitted records.
    """

    index: int
    start: int
    end: int
    error_code: str | None = None

    @property
    def size(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class BatchOutcome:
    """
    What happened to every batch of one persistence call.

    ``skipped`` holds batches never attempted because the caller asked to
    stop; ``failed`` holds batches that were attempted and not written.
    """

    succeeded: list[Batch] = field(default_factory=list)
    failed: list[Batch] = field(default_factory=list)
    skipped: list[Batch] = field(default_factory=list)

    @property
    def persisted_count(self) -> int:
        return sum(batch.size for batch in self.succeeded)

    @property
    def failed_count(self) -> int:
        return sum(batch.size for batch in self.failed)

    @property
    def skipped_count(self) -> int:
        return sum(batch.size for batch in self.skipped)

    @property
    def requested_count(self) -> int:
        return self.persisted_count + self.failed_count + self.skipped_count

    @property
    def is_complete(self) -> bool:
        return not self.failed and not self.skipped


@dataclass(frozen=True)
class IngestionSummary:
    total_rows: int
    processed_rows: int
    failed_rows: int
    failed_batches: int
    categories: list[str]
    date_range: DateRange


@dataclass(frozen=True)
class IngestionResult:
    """
    End-of-run result for one committed upload.
    """

    data_source_id: uuid.UUID
    tenant_id: uuid.UUID
    file_name: str
    outcome: BatchOutcome
    summary: IngestionSummary

    @property
    def metrics_created(self) -> int:
        return self.outcome.persisted_count
