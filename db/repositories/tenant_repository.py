"""
Tenant repository responsible for existence checks and creation.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from db.models.tenant import Tenant
from db.repositories.tenant_scope import set_tenant_scope


class TenantRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def set_tenant_scope(self, tenant_id: uuid.UUID) -> None:
        set_tenant_scope(self._session, tenant_id)

    def exists(self, tenant_id: uuid.UUID) -> bool:
        stmt = select(Tenant.id).where(Tenant.id == tenant_id)
        return self._session.scalars(stmt).first() is not None

    def create(
        self,
        *,
        tenant_id: uuid.UUID,
        name: str,
        settings: dict[str, Any] | None = None,
    ) -> None:
        """
        Insert one tenant row inside a SAVEPOINT.

        A concurrent insert of the same id surfaces as ``IntegrityError``; the
        savepoint is rolled back so the caller's transaction stays usable.
        """

        stmt = insert(Tenant).values(
            id=tenant_id,
            name=name,
            settings=settings or {},
        )
        with self._session.begin_nested():
            self._session.execute(stmt)
