"""
Data source repository for upload bookkeeping rows.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.data_source import DataSource
from db.repositories.tenant_scope import set_tenant_scope


class DataSourceRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def set_tenant_scope(self, tenant_id: uuid.UUID) -> None:
        set_tenant_scope(self._session, tenant_id)

    def create(
        self,
        *,
        tenant_id: uuid.UUID,
        source_type: str,
        name: str,
        config: dict[str, Any] | None = None,
    ) -> DataSource:
        data_source = DataSource(
            organization_id=tenant_id,
            type=source_type,
            name=name,
            is_active=True,
            config=config or {},
        )
        self._session.add(data_source)
        self._session.flush()
        self._session.refresh(data_source)
        return data_source

    def get_for_tenant(self, *, data_source_id: uuid.UUID, tenant_id: uuid.UUID) -> DataSource | None:
        stmt = select(DataSource).where(
            DataSource.id == data_source_id,
            DataSource.organization_id == tenant_id,
        )
        return self._session.scalars(stmt).first()

    def mark_synced(
        self,
        *,
        data_source_id: uuid.UUID,
        tenant_id: uuid.UUID,
        synced_at: datetime,
        processed_rows: int,
    ) -> DataSource | None:
        data_source = self.get_for_tenant(data_source_id=data_source_id, tenant_id=tenant_id)
        if data_source is None:
            return None
        data_source.last_sync = synced_at
        # Reassign rather than mutate so the JSONB change is flushed.
        data_source.config = {**(data_source.config or {}), "lastProcessedRows": processed_rows}
        return data_source

    def list_for_tenant(self, tenant_id: uuid.UUID, *, limit: int = 100) -> list[DataSource]:
        stmt = (
            select(DataSource)
            .where(DataSource.organization_id == tenant_id)
            .order_by(DataSource.created_at.desc())
            .limit(max(1, limit))
        )
        return list(self._session.scalars(stmt).all())
