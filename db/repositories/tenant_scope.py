"""
Row-level security scope for tenant-owned tables.

Every table created by this project carries a policy keyed on
``app.current_tenant``. The setting is transaction-local, so it must be set
again after every commit or rollback before the next tenant-owned statement.
"""

from __future__ import annotations

import uuid

from sqlalchemy import text
from sqlalchemy.orm import Session

TENANT_SETTING = "app.current_tenant"


def set_tenant_scope(session: Session, tenant_id: uuid.UUID) -> None:
    session.execute(
        text("SELECT set_config(:setting, :tenant_id, true)"),
        {"setting": TENANT_SETTING, "tenant_id": str(tenant_id)},
    )
