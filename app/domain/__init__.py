"""
app/domain package marker.
"""

from app.domain.persistence import Batch, BatchOutcome, IngestionResult, IngestionSummary
from app.domain.transactions import (
    DateRange,
    RowValidationError,
    TransactionRecord,
    UploadResult,
    UploadSummary,
)

__all__ = [
    "Batch",
    "BatchOutcome",
    "DateRange",
    "IngestionResult",
    "IngestionSummary",
    "RowValidationError",
    "TransactionRecord",
    "UploadResult",
    "UploadSummary",
]
