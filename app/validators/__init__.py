"""
app/validators package marker.
"""

from app.validators.transaction_validator import (
    OPTIONAL_COLUMNS,
    RECOGNIZED_COLUMNS,
    REQUIRED_COLUMNS,
    TransactionRowValidator,
    normalize_column_name,
)

__all__ = [
    "OPTIONAL_COLUMNS",
    "RECOGNIZED_COLUMNS",
    "REQUIRED_COLUMNS",
    "TransactionRowValidator",
    "normalize_column_name",
]
