"""create organizations, data_sources and business_metrics tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

metric_category = postgresql.ENUM(
    "sales",
    "finance",
    "marketing",
    "operations",
    name="metric_category",
    create_type=False,
)
data_source_type = postgresql.ENUM(
    "shopify",
    "quickbooks",
    "google_sheets",
    "csv",
    "manual",
    name="data_source_type",
    create_type=False,
)


def upgrade() -> None:
    bind = op.get_bind()
    metric_category.create(bind, checkfirst=True)
    data_source_type.create(bind, checkfirst=True)

    op.create_table(
        "organizations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("domain", sa.String(length=255), nullable=True),
        sa.Column(
            "settings",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
            comment="Per-tenant preferences (timezone, currency, date format)",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_organizations"),
        sa.UniqueConstraint("domain", name="uq_organizations_domain"),
    )

    op.create_table(
        "data_sources",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", data_source_type, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("last_sync", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "config",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["organization_id"],
            ["organizations.id"],
            name="fk_data_sources_organization_id_organizations",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_data_sources"),
    )
    op.create_index("ix_data_sources_organization_id", "data_sources", ["organization_id"], unique=False)
    op.create_index("ix_data_sources_type", "data_sources", ["type"], unique=False)
    op.create_index(
        "ix_data_sources_organization_created",
        "data_sources",
        ["organization_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "business_metrics",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("value", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("unit", sa.String(length=20), nullable=True),
        sa.Column("category", metric_category, nullable=False, comment="sales, finance, marketing, operations"),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("source", sa.String(length=100), nullable=False, comment="Origin tag, e.g. csv:<file name>"),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
            comment="Row annotations, including the original unmapped category",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["organization_id"],
            ["organizations.id"],
            name="fk_business_metrics_organization_id_organizations",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_business_metrics"),
    )
    op.create_index("ix_business_metrics_organization_id", "business_metrics", ["organization_id"], unique=False)
    op.create_index("ix_business_metrics_timestamp", "business_metrics", ["timestamp"], unique=False)
    op.create_index("ix_business_metrics_category", "business_metrics", ["category"], unique=False)
    op.create_index(
        "ix_business_metrics_organization_timestamp",
        "business_metrics",
        ["organization_id", "timestamp"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_business_metrics_organization_timestamp", table_name="business_metrics")
    op.drop_index("ix_business_metrics_category", table_name="business_metrics")
    op.drop_index("ix_business_metrics_timestamp", table_name="business_metrics")
    op.drop_index("ix_business_metrics_organization_id", table_name="business_metrics")
    op.drop_table("business_metrics")

    op.drop_index("ix_data_sources_organization_created", table_name="data_sources")
    op.drop_index("ix_data_sources_type", table_name="data_sources")
    op.drop_index("ix_data_sources_organization_id", table_name="data_sources")
    op.drop_table("data_sources")

    op.drop_table("organizations")

    bind = op.get_bind()
    data_source_type.drop(bind, checkfirst=True)
    metric_category.drop(bind, checkfirst=True)
