"""
tests/test_persistence_batcher.py

Pytest unit tests for PersistenceBatcher.

The metric repository and session are in-memory fakes; the fakes record
which batches were written, committed, and rolled back.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app import failure_codes
from app.domain.transactions import TransactionRecord
from app.services.persistence_batcher import (
    PersistenceBatcher,
    build_metric_payload,
    map_category,
    plan_batches,
)
from conftest import FakeMetricRepository, FakeSession

TENANT_ID = uuid.UUID("1d5a5faa-acca-4c50-804c-05d8f8a35811")
DATA_SOURCE_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")


def _records(count: int, *, category: str | None = "sales") -> list[TransactionRecord]:
    return [
        TransactionRecord(date="2024-01-15", amount=Decimal(index + 1), category=category)
        for index in range(count)
    ]


def _batcher(repository: FakeMetricRepository, **kwargs) -> PersistenceBatcher:
    return PersistenceBatcher(repository_factory=lambda db: repository, **kwargs)


class TestCategoryMapping:
    @pytest.mark.parametrize("raw", ["sales", "Finance", " MARKETING ", "operations"])
    def test_known_categories_map_to_themselves(self, raw: str) -> None:
        assert map_category(raw) == (raw.strip().lower(), False)

    @pytest.mark.parametrize("raw", ["Misc", "ops", "", None])
    def test_unknown_categories_fall_back_to_sales(self, raw: str | None) -> None:
        assert map_category(raw) == ("sales", True)


class TestPayload:
    def test_payload_shape(self) -> None:
        record = TransactionRecord(
            date="2024-01-15",
            amount=Decimal("99.95"),
            description="Widget",
            category="Misc",
            customer="Acme",
        )

        payload = build_metric_payload(
            record,
            tenant_id=TENANT_ID,
            source="csv:sales.csv",
            data_source_id=DATA_SOURCE_ID,
        )

        assert payload == {
            "organization_id": TENANT_ID,
            "name": "Widget",
            "value": Decimal("99.95"),
            "unit": "currency",
            "category": "sales",
            "timestamp": datetime(2024, 1, 15, tzinfo=timezone.utc),
            "source": "csv:sales.csv",
            "metadata_json": {
                "customer": "Acme",
                "originalDescription": "Widget",
                "dataSourceId": str(DATA_SOURCE_ID),
                "originalCategory": "Misc",
            },
        }

    def test_missing_description_uses_default_name(self) -> None:
        payload = build_metric_payload(
            TransactionRecord(date="2024-01-15", amount=Decimal("1")),
            tenant_id=TENANT_ID,
            source="csv:x.csv",
            data_source_id=DATA_SOURCE_ID,
        )

        assert payload["name"] == "Transaction"
        assert "originalCategory" not in payload["metadata_json"]

    def test_long_values_are_truncated_to_column_limits(self) -> None:
        payload = build_metric_payload(
            TransactionRecord(date="2024-01-15", amount=Decimal("1"), description="d" * 250),
            tenant_id=TENANT_ID,
            source="csv:" + "f" * 200,
            data_source_id=DATA_SOURCE_ID,
        )

        assert len(payload["name"]) == 100
        assert len(payload["source"]) == 100
        assert payload["metadata_json"]["originalDescription"] == "d" * 250


class TestPlanBatches:
    def test_slices_cover_every_record_once(self) -> None:
        batches = plan_batches(250, 100)

        assert [(batch.start, batch.end) for batch in batches] == [(0, 100), (100, 200), (200, 250)]
        assert [batch.index for batch in batches] == [0, 1, 2]

    def test_no_records_no_batches(self) -> None:
        assert plan_batches(0, 100) == []


class TestPersist:
    def test_all_batches_succeed(self, fake_session: FakeSession) -> None:
        repository = FakeMetricRepository()

        outcome = _batcher(repository).persist(
            fake_session,
            TENANT_ID,
            _records(250),
            source="csv:big.csv",
            data_source_id=DATA_SOURCE_ID,
        )

        assert outcome.persisted_count == 250
        assert outcome.is_complete
        assert [len(batch) for batch in repository.batches] == [100, 100, 50]
        assert fake_session.commits == 3
        assert all(row["organization_id"] == TENANT_ID for row in repository.rows)

    def test_failed_batch_is_rolled_back_and_later_batches_continue(self, fake_session: FakeSession) -> None:
        repository = FakeMetricRepository(fail_on_calls={1})

        outcome = _batcher(repository).persist(
            fake_session,
            TENANT_ID,
            _records(150),
            source="csv:two.csv",
            data_source_id=DATA_SOURCE_ID,
        )

        assert outcome.persisted_count == 100
        assert outcome.failed_count == 50
        assert outcome.requested_count == 150
        assert [(b.index, b.start, b.end, b.error_code) for b in outcome.failed] == [
            (1, 100, 150, failure_codes.BATCH_WRITE_FAILED)
        ]
        assert fake_session.commits == 1
        assert fake_session.rollbacks == 1

    def test_middle_batch_failure_does_not_stop_the_last_batch(self, fake_session: FakeSession) -> None:
        repository = FakeMetricRepository(fail_on_calls={1})

        outcome = _batcher(repository, batch_size=10).persist(
            fake_session,
            TENANT_ID,
            _records(30),
            source="csv:x.csv",
            data_source_id=DATA_SOURCE_ID,
        )

        assert [batch.index for batch in outcome.succeeded] == [0, 2]
        assert outcome.persisted_count == 20
        assert [row["value"] for row in repository.rows][-1] == Decimal(30)

    def test_unparseable_date_fails_only_its_batch_without_a_store_call(self, fake_session: FakeSession) -> None:
        records = _records(4)
        records[2] = TransactionRecord(date="not a date", amount=Decimal("5"))
        repository = FakeMetricRepository()

        outcome = _batcher(repository, batch_size=2).persist(
            fake_session,
            TENANT_ID,
            records,
            source="csv:x.csv",
            data_source_id=DATA_SOURCE_ID,
        )

        assert [batch.error_code for batch in outcome.failed] == [failure_codes.INVALID_TIMESTAMP]
        assert outcome.persisted_count == 2
        assert repository.calls == 1
        assert fake_session.rollbacks == 0

    def test_unknown_category_is_stored_as_sales_with_original_kept(
        self,
        fake_session: FakeSession,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level(logging.WARNING, logger="app.services.persistence_batcher")
        repository = FakeMetricRepository()

        _batcher(repository).persist(
            fake_session,
            TENANT_ID,
            _records(3, category="Misc"),
            source="csv:x.csv",
            data_source_id=DATA_SOURCE_ID,
        )

        assert {row["category"] for row in repository.rows} == {"sales"}
        assert {row["metadata_json"]["originalCategory"] for row in repository.rows} == {"Misc"}
        events = [json.loads(r.getMessage()) for r in caplog.records if r.getMessage().startswith("{")]
        fallback = [event for event in events if event["event"] == "category_fallback"]
        assert fallback and fallback[0]["original_categories"] == {"Misc": 3}

    def test_stop_before_first_batch_writes_nothing(self, fake_session: FakeSession) -> None:
        repository = FakeMetricRepository()

        outcome = _batcher(repository).persist(
            fake_session,
            TENANT_ID,
            _records(150),
            source="csv:x.csv",
            data_source_id=DATA_SOURCE_ID,
            should_stop=lambda: True,
        )

        assert outcome.persisted_count == 0
        assert outcome.skipped_count == 150
        assert {batch.error_code for batch in outcome.skipped} == {failure_codes.CANCELLED}
        assert repository.calls == 0
        assert fake_session.commits == 0

    def test_stop_between_batches_keeps_committed_work(self, fake_session: FakeSession) -> None:
        repository = FakeMetricRepository()

        outcome = _batcher(repository).persist(
            fake_session,
            TENANT_ID,
            _records(250),
            source="csv:x.csv",
            data_source_id=DATA_SOURCE_ID,
            should_stop=lambda: repository.calls >= 1,
        )

        assert outcome.persisted_count == 100
        assert [batch.index for batch in outcome.skipped] == [1, 2]

    def test_tenant_scope_is_set_for_every_batch(self, fake_session: FakeSession) -> None:
        repository = FakeMetricRepository()

        _batcher(repository).persist(
            fake_session,
            TENANT_ID,
            _records(201),
            source="csv:x.csv",
            data_source_id=DATA_SOURCE_ID,
        )

        assert repository.scopes == [TENANT_ID, TENANT_ID, TENANT_ID]

    def test_tenant_scope_can_be_disabled(self, fake_session: FakeSession) -> None:
        repository = FakeMetricRepository()

        _batcher(repository, set_tenant_scope=False).persist(
            fake_session,
            TENANT_ID,
            _records(5),
            source="csv:x.csv",
            data_source_id=DATA_SOURCE_ID,
        )

        assert repository.scopes == []

    def test_metrics_created_never_exceeds_submitted(self, fake_session: FakeSession) -> None:
        for failing in ({0}, {0, 1, 2}, set()):
            repository = FakeMetricRepository(fail_on_calls=failing)
            outcome = _batcher(repository, batch_size=7).persist(
                fake_session,
                TENANT_ID,
                _records(20),
                source="csv:x.csv",
                data_source_id=DATA_SOURCE_ID,
            )
            assert outcome.persisted_count <= 20
            assert outcome.persisted_count == 20 - outcome.failed_count
