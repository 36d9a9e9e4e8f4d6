"""
app/services/upload_orchestrator.py

Pre-submission pipeline: file checks -> decode -> per-row validation -> UploadResult.

Nothing here touches the store. Persisting the accepted rows is a separate,
explicit step (see ``upload_ingestion_service``), so a caller can show the
user the partial result before committing it.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import PurePath

from app.config import DEFAULT_MAX_FILE_BYTES, get_upload_settings
from app.domain.transactions import RowValidationError, TransactionRecord, UploadResult
from app.domain.upload_errors import (
    FileTooLargeError,
    NoValidRowsError,
    UploadRejectedError,
    WrongFileTypeError,
)
from app.logging_utils import log_event
from app.parsing.csv_decoder import CSVDecoder
from app.validators.transaction_validator import TransactionRowValidator

logger = logging.getLogger(__name__)

ALLOWED_EXTENSION = ".csv"


class UploadOrchestrator:
    """
    Validates one uploaded file and applies the partial-acceptance policy.

    If at least one row validates, the result carries the valid subset and the
    other rows' errors as warnings. If none validate, the whole upload fails
    with ``NoValidRowsError``.
    """

    def __init__(
        self,
        *,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        log_validation_errors: bool = True,
        decoder: CSVDecoder | None = None,
        validator: TransactionRowValidator | None = None,
    ) -> None:
        self._max_file_bytes = max(1, max_file_bytes)
        self._log_validation_errors = log_validation_errors
        self._decoder = decoder or CSVDecoder()
        self._validator = validator or TransactionRowValidator()

    @property
    def max_file_bytes(self) -> int:
        return self._max_file_bytes

    def check_file(self, *, file_name: str, size_bytes: int) -> None:
        """
        Reject wrong extensions and oversized files before any decoding.
        """

        suffix = PurePath((file_name or "").strip()).suffix.lower()
        if suffix != ALLOWED_EXTENSION:
            raise WrongFileTypeError(
                f"Only CSV files are allowed; got '{file_name}'.",
                details={"file_name": file_name},
            )

        if size_bytes > self._max_file_bytes:
            limit_mb = self._max_file_bytes / (1024 * 1024)
            raise FileTooLargeError(
                f"File size must be less than {limit_mb:g}MB.",
                details={"size_bytes": size_bytes, "max_bytes": self._max_file_bytes},
            )

    def process(self, *, file_name: str, content: bytes | str) -> UploadResult:
        """
        Run the full pre-submission pipeline for one file.

        Deterministic: the same name and bytes always give an equal result.
        """

        size_bytes = len(content.encode("utf-8")) if isinstance(content, str) else len(content)
        try:
            self.check_file(file_name=file_name, size_bytes=size_bytes)
            decoded = self._decoder.decode(content, file_name)
        except UploadRejectedError as exc:
            log_event(
                logger,
                logging.INFO,
                "upload_rejected",
                file_name=file_name,
                code=exc.code,
                message=exc.message,
            )
            raise

        accepted: list[TransactionRecord] = []
        errors: list[RowValidationError] = []
        for row_index, raw_row in enumerate(decoded.rows):
            record, row_errors = self._validator.validate_row(raw_row, row_index)
            if record is not None:
                accepted.append(record)
                continue
            for error in row_errors:
                self._record_error(errors, error, file_name=file_name)

        if not accepted:
            log_event(
                logger,
                logging.INFO,
                "upload_rejected",
                file_name=file_name,
                code=NoValidRowsError.code,
                total_rows=len(decoded.rows),
                error_count=len(errors),
            )
            raise NoValidRowsError(errors=errors)

        logger.info(
            "Validated upload file=%r total_rows=%s accepted=%s errors=%s",
            file_name,
            len(decoded.rows),
            len(accepted),
            len(errors),
        )
        return UploadResult(
            accepted_rows=accepted,
            file_name=file_name,
            total_row_count=len(decoded.rows),
            errors=errors,
        )

    def _record_error(
        self,
        errors: list[RowValidationError],
        error: RowValidationError,
        *,
        file_name: str,
    ) -> None:
        if self._log_validation_errors:
            logger.warning(
                "Upload validation error file=%r row=%s field=%s code=%s value=%r",
                file_name,
                error.row_number,
                error.field,
                error.code,
                error.value,
            )
        errors.append(error)


@lru_cache(maxsize=1)
def get_upload_orchestrator() -> UploadOrchestrator:
    """
    Build and cache the orchestrator with env-driven settings.
    """

    settings = get_upload_settings()
    return UploadOrchestrator(
        max_file_bytes=settings.max_file_bytes,
        log_validation_errors=settings.log_validation_errors,
    )
