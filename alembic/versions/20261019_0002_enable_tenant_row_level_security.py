"""enable tenant row-level security on tenant-owned tables

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 09:10:00

Policies compare rows with the transaction-local ``app.current_tenant``
setting. Table owners bypass RLS, so the policies bind roles that do not own
these tables (read replicas, analytics roles, restricted writers).
"""

from __future__ import annotations

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None

_CURRENT_TENANT = "NULLIF(current_setting('app.current_tenant', true), '')::uuid"

_TENANT_COLUMNS = {
    "organizations": "id",
    "data_sources": "organization_id",
    "business_metrics": "organization_id",
}


def upgrade() -> None:
    for table, column in _TENANT_COLUMNS.items():
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(
            f"CREATE POLICY {table}_tenant_isolation ON {table} "
            f"USING ({column} = {_CURRENT_TENANT}) "
            f"WITH CHECK ({column} = {_CURRENT_TENANT})"
        )


def downgrade() -> None:
    for table in reversed(list(_TENANT_COLUMNS)):
        op.execute(f"DROP POLICY IF EXISTS {table}_tenant_isolation ON {table}")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")
