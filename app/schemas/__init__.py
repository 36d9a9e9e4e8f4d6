"""
app/schemas package marker.
"""

from app.schemas.upload import (
    DataSourceListResponse,
    DataSourceResponse,
    UploadRequest,
    UploadResponse,
    ValidationResultResponse,
)

__all__ = [
    "DataSourceListResponse",
    "DataSourceResponse",
    "UploadRequest",
    "UploadResponse",
    "ValidationResultResponse",
]
