"""
app/services/persistence_batcher.py

Turns validated transactions into business metric rows and writes them in
fixed-size batches.

Every batch is its own transaction: a batch that fails is rolled back and
reported, and the remaining batches are still attempted. Callers get a
``BatchOutcome`` describing exactly which slices were written.
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from collections.abc import Callable, Sequence
from functools import lru_cache
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import failure_codes
from app.config import DEFAULT_BATCH_SIZE, get_upload_settings
from app.domain.persistence import Batch, BatchOutcome
from app.domain.transactions import DEFAULT_METRIC_CATEGORY, METRIC_CATEGORIES, TransactionRecord
from app.logging_utils import log_event
from app.parsing.timestamps import parse_timestamp
from app.repositories.metric_repository import BusinessMetricRepository

logger = logging.getLogger(__name__)

DEFAULT_METRIC_NAME = "Transaction"
METRIC_UNIT = "currency"
MAX_NAME_LENGTH = 100
MAX_SOURCE_LENGTH = 100


class InvalidTimestampError(ValueError):
    """
    Raised when a record's date cannot be read as a calendar timestamp.
    """

    def __init__(self, value: str) -> None:
        super().__init__(f"Unparseable date: {value!r}")
        self.value = value


def map_category(raw_category: str | None) -> tuple[str, bool]:
    """
    Map free-text category to the closed metric category set.

    Returns ``(category, fell_back)``. Anything outside the set, including an
    empty value, becomes ``sales``.
    """

    normalized = (raw_category or "").strip().lower()
    if normalized in METRIC_CATEGORIES:
        return normalized, False
    return DEFAULT_METRIC_CATEGORY, True


def build_metric_payload(
    record: TransactionRecord,
    *,
    tenant_id: uuid.UUID,
    source: str,
    data_source_id: uuid.UUID,
) -> dict[str, Any]:
    """
    Build one ``business_metrics`` insert payload from a transaction.
    """

    timestamp = parse_timestamp(record.date)
    if timestamp is None:
        raise InvalidTimestampError(record.date)

    category, _ = map_category(record.category)
    metadata = {
        "customer": record.customer,
        "product": record.product,
        "originalDescription": record.description,
        "dataSourceId": str(data_source_id),
        "originalCategory": record.category,
    }
    return {
        "organization_id": tenant_id,
        "name": (record.description or DEFAULT_METRIC_NAME)[:MAX_NAME_LENGTH],
        "value": record.amount,
        "unit": METRIC_UNIT,
        "category": category,
        "timestamp": timestamp,
        "source": source[:MAX_SOURCE_LENGTH],
        "metadata_json": {key: value for key, value in metadata.items() if value is not None},
    }


def plan_batches(record_count: int, batch_size: int) -> list[Batch]:
    size = max(1, batch_size)
    return [
        Batch(index=index, start=start, end=min(start + size, record_count))
        for index, start in enumerate(range(0, record_count, size))
    ]


class PersistenceBatcher:
    """
    Writes accepted transactions for one tenant as business metrics.
    """

    def __init__(
        self,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        set_tenant_scope: bool = True,
        repository_factory: Callable[[Session], BusinessMetricRepository] = BusinessMetricRepository,
    ) -> None:
        self._batch_size = max(1, batch_size)
        self._set_tenant_scope = set_tenant_scope
        self._repository_factory = repository_factory

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def persist(
        self,
        db: Session,
        tenant_id: uuid.UUID,
        records: Sequence[TransactionRecord],
        *,
        source: str,
        data_source_id: uuid.UUID,
        should_stop: Callable[[], bool] | None = None,
    ) -> BatchOutcome:
        """
        Persist ``records`` in order, one transaction per batch.

        ``should_stop`` is polled before each batch; once it returns true, the
        remaining batches are reported as skipped and nothing more is written.
        """

        repository = self._repository_factory(db)
        outcome = BatchOutcome()
        batches = plan_batches(len(records), self._batch_size)
        self._log_category_fallbacks(records, tenant_id=tenant_id, data_source_id=data_source_id)

        for position, batch in enumerate(batches):
            if should_stop is not None and should_stop():
                outcome.skipped.extend(
                    Batch(
                        index=pending.index,
                        start=pending.start,
                        end=pending.end,
                        error_code=failure_codes.CANCELLED,
                    )
                    for pending in batches[position:]
                )
                logger.info(
                    "Metric persistence stopped tenant_id=%s data_source_id=%s skipped_batches=%s",
                    tenant_id,
                    data_source_id,
                    len(batches) - position,
                )
                break

            chunk = records[batch.start:batch.end]
            try:
                payloads = [
                    build_metric_payload(
                        record,
                        tenant_id=tenant_id,
                        source=source,
                        data_source_id=data_source_id,
                    )
                    for record in chunk
                ]
            except InvalidTimestampError as exc:
                self._mark_failed(
                    outcome,
                    batch,
                    error_code=failure_codes.INVALID_TIMESTAMP,
                    tenant_id=tenant_id,
                    data_source_id=data_source_id,
                    reason=str(exc),
                )
                continue

            try:
                if self._set_tenant_scope:
                    repository.set_tenant_scope(tenant_id)
                repository.insert_batch(payloads)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                self._mark_failed(
                    outcome,
                    batch,
                    error_code=failure_codes.BATCH_WRITE_FAILED,
                    tenant_id=tenant_id,
                    data_source_id=data_source_id,
                    reason=exc.__class__.__name__,
                )
                continue

            outcome.succeeded.append(batch)

        logger.info(
            "Metric persistence finished tenant_id=%s data_source_id=%s persisted=%s failed=%s skipped=%s",
            tenant_id,
            data_source_id,
            outcome.persisted_count,
            outcome.failed_count,
            outcome.skipped_count,
        )
        return outcome

    def _mark_failed(
        self,
        outcome: BatchOutcome,
        batch: Batch,
        *,
        error_code: str,
        tenant_id: uuid.UUID,
        data_source_id: uuid.UUID,
        reason: str,
    ) -> None:
        outcome.failed.append(
            Batch(index=batch.index, start=batch.start, end=batch.end, error_code=error_code)
        )
        log_event(
            logger,
            logging.ERROR,
            "batch_failed",
            tenant_id=str(tenant_id),
            data_source_id=str(data_source_id),
            batch_index=batch.index,
            rows=batch.size,
            code=error_code,
            reason=reason,
        )

    @staticmethod
    def _log_category_fallbacks(
        records: Sequence[TransactionRecord],
        *,
        tenant_id: uuid.UUID,
        data_source_id: uuid.UUID,
    ) -> None:
        fallbacks: Counter[str] = Counter()
        for record in records:
            if record.category is None:
                continue
            _, fell_back = map_category(record.category)
            if fell_back:
                fallbacks[record.category] += 1

        if not fallbacks:
            return
        log_event(
            logger,
            logging.WARNING,
            "category_fallback",
            tenant_id=str(tenant_id),
            data_source_id=str(data_source_id),
            fallback_category=DEFAULT_METRIC_CATEGORY,
            original_categories=dict(fallbacks),
        )


@lru_cache(maxsize=1)
def get_persistence_batcher() -> PersistenceBatcher:
    """
    Build and cache the batcher with env-driven settings.
    """

    settings = get_upload_settings()
    return PersistenceBatcher(
        batch_size=settings.batch_size,
        set_tenant_scope=settings.set_tenant_scope,
    )
