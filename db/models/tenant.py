"""
db/models/tenant.py

Tenant model: root entity for multi-tenancy (table ``organizations``).
Every data source and metric row is scoped to exactly one tenant.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.business_metric import BusinessMetric
    from db.models.data_source import DataSource


class Tenant(Base, TimestampMixin):
    """
    One business using the service.

    The primary key is not generated by the database: tenants created by the
    upload flow take an id derived from the external principal id, so the same
    principal always lands on the same row.
    """

    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    domain: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
    )

    settings: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
        comment="Per-tenant preferences (timezone, currency, date format)",
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    data_sources: Mapped[list["DataSource"]] = relationship(
        "DataSource",
        back_populates="tenant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    metrics: Mapped[list["BusinessMetric"]] = relationship(
        "BusinessMetric",
        back_populates="tenant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} name={self.name!r}>"
