"""
db/models/data_source.py

DataSource model: one row per upload event (or connector).
Metrics point back to it softly through ``metadata.dataSourceId``.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, text
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.tenant import Tenant


class DataSourceType:
    SHOPIFY = "shopify"
    QUICKBOOKS = "quickbooks"
    GOOGLE_SHEETS = "google_sheets"
    CSV = "csv"
    MANUAL = "manual"

    ALL = (SHOPIFY, QUICKBOOKS, GOOGLE_SHEETS, CSV, MANUAL)


data_source_type_enum = ENUM(
    *DataSourceType.ALL,
    name="data_source_type",
    create_type=False,
)


class DataSource(Base, TimestampMixin):
    """
    Records where a batch of metrics came from.

    config stores upload bookkeeping: fileName, uploadedAt, rowCount and,
    after persistence, lastProcessedRows.
    """

    __tablename__ = "data_sources"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )

    type: Mapped[str] = mapped_column(
        data_source_type_enum,
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    last_sync: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    config: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    tenant: Mapped["Tenant"] = relationship(
        "Tenant",
        back_populates="data_sources",
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_data_sources_organization_id", "organization_id"),
        Index("ix_data_sources_type", "type"),
        Index("ix_data_sources_organization_created", "organization_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<DataSource id={self.id} name={self.name!r} "
            f"organization_id={self.organization_id} type={self.type!r}>"
        )
