"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.business_metric import BusinessMetric, MetricCategory
from db.models.data_source import DataSource, DataSourceType
from db.models.tenant import Tenant

__all__ = [
    "BusinessMetric",
    "DataSource",
    "DataSourceType",
    "MetricCategory",
    "Tenant",
]
