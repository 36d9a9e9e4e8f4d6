"""
app/validators/transaction_validator.py

Row-level validation and normalization for uploaded transaction rows.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from app import failure_codes
from app.domain.transactions import RowValidationError, TransactionRecord

REQUIRED_COLUMNS: tuple[str, ...] = ("date", "amount")
OPTIONAL_COLUMNS: tuple[str, ...] = ("description", "category", "customer", "product")
RECOGNIZED_COLUMNS: tuple[str, ...] = REQUIRED_COLUMNS + OPTIONAL_COLUMNS

# Plain decimal notation with an optional exponent; no grouping characters.
_NUMBER_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def normalize_column_name(name: Any) -> str:
    """
    Lower-case and trim one column name. Idempotent.
    """

    return str(name).strip().lower()


class TransactionRowValidator:
    """
    Validates one untyped row into a ``TransactionRecord``.

    Exactly one side of the returned pair is populated: the record when the
    row is valid, otherwise a non-empty error list.
    """

    def normalize_row(self, row: Mapping[Any, Any]) -> dict[str, Any]:
        """
        Normalize keys and trim string values.

        When two raw keys normalize to the same name the last one wins.
        """

        normalized: dict[str, Any] = {}
        for key, value in row.items():
            if key is None:
                continue
            normalized[normalize_column_name(key)] = value.strip() if isinstance(value, str) else value
        return normalized

    def validate_row(
        self,
        raw_row: Mapping[Any, Any],
        row_index: int,
    ) -> tuple[TransactionRecord | None, list[RowValidationError]]:
        """
        Validate and normalize one row. Pure function of its input.
        """

        row = self.normalize_row(raw_row)
        errors: list[RowValidationError] = []

        date = self._parse_date(
            value=row.get("date"),
            row_index=row_index,
            errors=errors,
        )
        amount = self._parse_amount(
            value=row.get("amount"),
            row_index=row_index,
            errors=errors,
        )

        if errors:
            return None, errors

        return (
            TransactionRecord(
                date=date,
                amount=amount,
                description=self._parse_optional_string(row.get("description")),
                category=self._parse_optional_string(row.get("category")),
                customer=self._parse_optional_string(row.get("customer")),
                product=self._parse_optional_string(row.get("product")),
            ),
            [],
        )

    def _parse_date(
        self,
        *,
        value: Any,
        row_index: int,
        errors: list[RowValidationError],
    ) -> str:
        if self._is_blank(value):
            errors.append(
                RowValidationError(
                    row_index=row_index,
                    field="date",
                    code=failure_codes.REQUIRED_FIELD_MISSING,
                    reason="Date is required",
                    value=self._stringify_value(value),
                )
            )
            return ""
        return str(value).strip()

    def _parse_amount(
        self,
        *,
        value: Any,
        row_index: int,
        errors: list[RowValidationError],
    ) -> Decimal:
        amount = self.coerce_amount(value)
        if amount is None:
            errors.append(
                RowValidationError(
                    row_index=row_index,
                    field="amount",
                    code=failure_codes.INVALID_NUMBER,
                    reason="Amount must be a valid number",
                    value=self._stringify_value(value),
                )
            )
            return Decimal("0")
        return amount

    @staticmethod
    def coerce_amount(value: Any) -> Decimal | None:
        """
        Coerce a string or number into a finite Decimal, or None.
        """

        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, Decimal):
            candidate = value
        elif isinstance(value, (int, float)):
            # str() keeps the shortest repr, so 0.1 stays 0.1 rather than its binary expansion.
            candidate = Decimal(str(value))
        else:
            raw = str(value).strip()
            if not _NUMBER_PATTERN.fullmatch(raw):
                return None
            try:
                candidate = Decimal(raw)
            except (InvalidOperation, ValueError):
                return None

        if not candidate.is_finite():
            return None
        return candidate

    def _parse_optional_string(self, value: Any) -> str | None:
        if self._is_blank(value):
            return None
        return str(value).strip()

    @staticmethod
    def _is_blank(value: Any) -> bool:
        if value is None:
            return True
        return str(value).strip() == ""

    @staticmethod
    def _stringify_value(value: Any) -> str | None:
        if value is None:
            return None
        return str(value)
