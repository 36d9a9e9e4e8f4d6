"""
app/domain/transactions.py

Domain models used by the transaction upload flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from app.parsing.timestamps import parse_timestamp

RawRow = dict[str, str]

METRIC_CATEGORIES: tuple[str, ...] = ("sales", "finance", "marketing", "operations")
DEFAULT_METRIC_CATEGORY = "sales"


@dataclass(frozen=True)
class TransactionRecord:
    """
    One validated transaction row.

    ``date`` is only guaranteed non-empty here; calendar validity is checked
    when the row is turned into a metric.
    """

    date: str
    amount: Decimal
    description: str | None = None
    category: str | None = None
    customer: str | None = None
    product: str | None = None


@dataclass(frozen=True)
class RowValidationError:
    """
    One field-level validation error for a 0-based data row.
    """

    row_index: int
    field: str
    code: str
    reason: str
    value: str | None = None

    @property
    def row_number(self) -> int:
        return self.row_index + 1

    @property
    def message(self) -> str:
        return f"{self.field}: {self.reason}"

    def display(self) -> str:
        return f"Row {self.row_number}: {self.field} - {self.reason}"


@dataclass(frozen=True)
class DateRange:
    start: str | None
    end: str | None


@dataclass(frozen=True)
class UploadSummary:
    """
    Client-facing digest of a validated file.
    """

    total_rows: int
    valid_rows: int
    invalid_rows: int
    categories: list[str]
    date_range: DateRange
    total_amount: Decimal


@dataclass(frozen=True)
class UploadResult:
    """
    Outcome of validating one uploaded file, before anything is persisted.
    """

    accepted_rows: list[TransactionRecord]
    file_name: str
    total_row_count: int
    errors: list[RowValidationError] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.errors)

    @property
    def summary(self) -> UploadSummary:
        invalid_rows = len({error.row_index for error in self.errors})
        return UploadSummary(
            total_rows=self.total_row_count,
            valid_rows=len(self.accepted_rows),
            invalid_rows=invalid_rows,
            categories=distinct_categories(self.accepted_rows),
            date_range=date_range(self.accepted_rows),
            total_amount=sum((row.amount for row in self.accepted_rows), Decimal("0")),
        )


def distinct_categories(records: Iterable[TransactionRecord]) -> list[str]:
    """
    Return non-empty raw category values in first-seen order.
    """

    seen: dict[str, None] = {}
    for record in records:
        if record.category:
            seen.setdefault(record.category, None)
    return list(seen)


def date_range(records: Iterable[TransactionRecord]) -> DateRange:
    """
    Return the raw date strings of the earliest and latest parseable dates.
    """

    earliest: tuple | None = None
    latest: tuple | None = None
    for record in records:
        parsed = parse_timestamp(record.date)
        if parsed is None:
            continue
        if earliest is None or parsed < earliest[0]:
            earliest = (parsed, record.date)
        if latest is None or parsed > latest[0]:
            latest = (parsed, record.date)

    return DateRange(
        start=earliest[1] if earliest else None,
        end=latest[1] if latest else None,
    )
