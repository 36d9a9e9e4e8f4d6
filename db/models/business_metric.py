"""
db/models/business_metric.py

BusinessMetric model: one persisted metric per uploaded transaction row.
Rows are append-only: this service never updates or deletes them.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, text
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, CreatedAtMixin

if TYPE_CHECKING:
    from db.models.tenant import Tenant


class MetricCategory:
    SALES = "sales"
    FINANCE = "finance"
    MARKETING = "marketing"
    OPERATIONS = "operations"

    ALL = (SALES, FINANCE, MARKETING, OPERATIONS)


metric_category_enum = ENUM(
    *MetricCategory.ALL,
    name="metric_category",
    create_type=False,
)


class BusinessMetric(Base, CreatedAtMixin):
    __tablename__ = "business_metrics"

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

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)
    category: Mapped[str] = mapped_column(
        metric_category_enum,
        nullable=False,
        comment="sales, finance, marketing, operations",
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    source: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Origin tag, e.g. csv:<file name>",
    )
    # "metadata" is reserved on declarative classes, so the attribute is renamed.
    metadata_json: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
        comment="Row annotations, including the original unmapped category",
    )

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="metrics")

    __table_args__ = (
        Index("ix_business_metrics_organization_id", "organization_id"),
        Index("ix_business_metrics_timestamp", "timestamp"),
        Index("ix_business_metrics_category", "category"),
        Index("ix_business_metrics_organization_timestamp", "organization_id", "timestamp"),
    )
