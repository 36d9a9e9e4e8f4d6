"""
app/domain/upload_errors.py

Input-shape exceptions raised before any row reaches the store.
"""

from __future__ import annotations

from typing import Any, Sequence

from app import failure_codes
from app.domain.transactions import RowValidationError


class UploadRejectedError(ValueError):
    """
    Base class for whole-file rejections.

    ``code`` is one of the taxonomy labels in ``app.failure_codes``; ``hint``
    is remediation text safe to show to the end user.
    """

    code: str = failure_codes.MALFORMED_FILE
    hint: str = "Check the file and try again."

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.code,
            "message": self.message,
            "hint": self.hint,
            "details": self.details,
        }


class WrongFileTypeError(UploadRejectedError):
    code = failure_codes.WRONG_FILE_TYPE
    hint = "Please select a CSV file."


class FileTooLargeError(UploadRejectedError):
    code = failure_codes.FILE_TOO_LARGE
    hint = "Split the file into smaller parts and upload them one at a time."


class FileDecodeError(UploadRejectedError):
    code = failure_codes.MALFORMED_FILE
    hint = "Save the file as UTF-8 CSV with consistent quoting and column counts."


class EmptyFileError(UploadRejectedError):
    code = failure_codes.EMPTY_FILE
    hint = "CSV file is empty - please check file format and content."


class MissingRequiredColumnsError(UploadRejectedError):
    code = failure_codes.MISSING_REQUIRED_COLUMNS
    hint = "Add a header row containing at least the 'date' and 'amount' columns."

    def __init__(self, *, missing: Sequence[str], found: Sequence[str]) -> None:
        super().__init__(
            f"Missing required columns: {', '.join(missing)}. "
            f"Found columns: {', '.join(found)}",
            details={"missing": list(missing), "found": list(found)},
        )
        self.missing = tuple(missing)
        self.found = tuple(found)


class DuplicateColumnsError(UploadRejectedError):
    code = failure_codes.DUPLICATE_COLUMNS
    hint = "Column names are case-insensitive; keep only one column per name."

    def __init__(self, *, duplicates: Sequence[str]) -> None:
        super().__init__(
            f"Duplicate columns found: {', '.join(duplicates)}",
            details={"duplicates": list(duplicates)},
        )
        self.duplicates = tuple(duplicates)


class NoValidRowsError(UploadRejectedError):
    code = failure_codes.NO_VALID_ROWS
    hint = "Every row needs a date and a numeric amount."

    def __init__(self, *, errors: Sequence[RowValidationError]) -> None:
        super().__init__(
            "No valid data rows found",
            details={"errors": [error.display() for error in errors]},
        )
        self.errors = tuple(errors)
