"""
Shared in-memory fakes. No test in this suite talks to a database.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError


class FakeSession:
    """
    Counts transaction boundaries the services drive.

    ``journal`` is shared with the fake repositories so tests can assert the
    order of scope calls, writes and commits.
    """

    def __init__(self, journal: list[str] | None = None) -> None:
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.journal = journal if journal is not None else []

    def commit(self) -> None:
        self.commits += 1
        self.journal.append("commit")

    def rollback(self) -> None:
        self.rollbacks += 1
        self.journal.append("rollback")

    def close(self) -> None:
        self.closed = True


class FakeMetricRepository:
    """
    Stores inserted payloads per batch call.

    ``fail_on_calls`` holds 0-based insert call numbers that raise a store error.
    """

    def __init__(self, fail_on_calls: set[int] | None = None, journal: list[str] | None = None) -> None:
        self.fail_on_calls = set(fail_on_calls or ())
        self.journal = journal if journal is not None else []
        self.calls = 0
        self.batches: list[list[dict[str, Any]]] = []
        self.scopes: list[uuid.UUID] = []

    @property
    def rows(self) -> list[dict[str, Any]]:
        return [row for batch in self.batches for row in batch]

    def set_tenant_scope(self, tenant_id: uuid.UUID) -> None:
        self.scopes.append(tenant_id)
        self.journal.append("scope")

    def insert_batch(self, payloads: list[dict[str, Any]]) -> int:
        call = self.calls
        self.calls += 1
        self.journal.append("insert business_metrics")
        if call in self.fail_on_calls:
            raise OperationalError("INSERT INTO business_metrics", {}, Exception("connection reset"))
        self.batches.append(list(payloads))
        return len(payloads)


class FakeTenantStore:
    def __init__(self) -> None:
        self.rows: dict[uuid.UUID, dict[str, Any]] = {}
        self.lock = threading.Lock()


class FakeTenantRepository:
    """
    Tenant repository over a shared store.

    ``create_barrier`` makes concurrent callers reach ``create`` together, after
    all of them have already seen the tenant as absent.
    """

    def __init__(
        self,
        store: FakeTenantStore,
        *,
        create_barrier: threading.Barrier | None = None,
        fail_exists: bool = False,
        conflict_without_row: bool = False,
        journal: list[str] | None = None,
    ) -> None:
        self.store = store
        self.journal = journal if journal is not None else []
        self.scopes: list[uuid.UUID] = []
        self.create_barrier = create_barrier
        self.fail_exists = fail_exists
        self.conflict_without_row = conflict_without_row

    def set_tenant_scope(self, tenant_id: uuid.UUID) -> None:
        self.scopes.append(tenant_id)
        self.journal.append("scope")

    def exists(self, tenant_id: uuid.UUID) -> bool:
        self.journal.append("select organizations")
        if self.fail_exists:
            raise OperationalError("SELECT organizations", {}, Exception("database is down"))
        with self.store.lock:
            return tenant_id in self.store.rows

    def create(self, *, tenant_id: uuid.UUID, name: str, settings: dict[str, Any] | None = None) -> None:
        if self.create_barrier is not None:
            self.create_barrier.wait(timeout=5)
        self.journal.append("insert organizations")
        if self.conflict_without_row:
            raise IntegrityError("INSERT INTO organizations", {}, Exception("duplicate key"))
        with self.store.lock:
            if tenant_id in self.store.rows:
                raise IntegrityError("INSERT INTO organizations", {}, Exception("duplicate key"))
            self.store.rows[tenant_id] = {"name": name, "settings": settings or {}}


class FakeDataSourceRepository:
    def __init__(
        self,
        *,
        fail_create: bool = False,
        fail_sync: bool = False,
        missing_on_sync: bool = False,
        journal: list[str] | None = None,
    ) -> None:
        self.fail_create = fail_create
        self.fail_sync = fail_sync
        self.missing_on_sync = missing_on_sync
        self.journal = journal if journal is not None else []
        self.scopes: list[uuid.UUID] = []
        self.rows: list[SimpleNamespace] = []
        self.synced: list[dict[str, Any]] = []

    def set_tenant_scope(self, tenant_id: uuid.UUID) -> None:
        self.scopes.append(tenant_id)
        self.journal.append("scope")

    def create(self, *, tenant_id: uuid.UUID, source_type: str, name: str, config: dict[str, Any] | None = None):
        self.journal.append("insert data_sources")
        if self.fail_create:
            raise OperationalError("INSERT INTO data_sources", {}, Exception("disk full"))
        # Strictly increasing so newest-first ordering is unambiguous.
        now = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=len(self.rows))
        row = SimpleNamespace(
            id=uuid.uuid4(),
            organization_id=tenant_id,
            type=source_type,
            name=name,
            is_active=True,
            last_sync=None,
            config=dict(config or {}),
            created_at=now,
            updated_at=now,
        )
        self.rows.append(row)
        return row

    def mark_synced(self, *, data_source_id, tenant_id, synced_at, processed_rows):
        self.journal.append("update data_sources")
        if self.fail_sync:
            raise OperationalError("UPDATE data_sources", {}, Exception("lock timeout"))
        self.synced.append({"data_source_id": data_source_id, "processed_rows": processed_rows})
        if self.missing_on_sync:
            return None
        for row in self.rows:
            if row.id == data_source_id and row.organization_id == tenant_id:
                row.last_sync = synced_at
                row.config = {**row.config, "lastProcessedRows": processed_rows}
                return row
        return None

    def list_for_tenant(self, tenant_id: uuid.UUID, *, limit: int = 100):
        self.journal.append("select data_sources")
        owned = [row for row in self.rows if row.organization_id == tenant_id]
        return sorted(owned, key=lambda row: row.created_at, reverse=True)[:limit]


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def tenant_store() -> FakeTenantStore:
    return FakeTenantStore()
