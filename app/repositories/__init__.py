"""
app/repositories package marker.
"""

from app.repositories.metric_repository import BusinessMetricRepository

__all__ = [
    "BusinessMetricRepository",
]
