"""
app/repositories/metric_repository.py

Persistence layer for business metric rows.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from db.models.business_metric import BusinessMetric
from db.repositories.tenant_scope import set_tenant_scope


class BusinessMetricRepository:
    """
    Repository for batch inserts of business metrics.

    The caller controls commit/rollback; this repository never commits.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def set_tenant_scope(self, tenant_id: uuid.UUID) -> None:
        """
        Scope the current transaction to one tenant for row-level security.

        ``set_config(..., true)`` is transaction-local, so this must run again
        after every commit.
        """

        set_tenant_scope(self._session, tenant_id)

    def insert_batch(self, payloads: Sequence[dict[str, Any]]) -> int:
        """
        Insert one batch with a single multi-row INSERT and return rows written.
        """

        if not payloads:
            return 0

        stmt = insert(BusinessMetric).values(list(payloads)).returning(BusinessMetric.id)
        return len(self._session.scalars(stmt).all())
