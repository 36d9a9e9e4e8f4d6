"""
tests/test_upload_orchestrator.py

Pytest unit tests for the pre-submission pipeline: file checks, decoding,
row validation, and the partial-acceptance policy.

All tests are pure Python: nothing here touches a database.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal

import pytest

from app import failure_codes
from app.domain.upload_errors import (
    EmptyFileError,
    FileTooLargeError,
    MissingRequiredColumnsError,
    NoValidRowsError,
    WrongFileTypeError,
)
from app.services.upload_orchestrator import UploadOrchestrator


@pytest.fixture()
def orchestrator() -> UploadOrchestrator:
    return UploadOrchestrator(log_validation_errors=False)


HAPPY_CSV = (
    "Date,Amount,Description,Category,Customer,Product\n"
    "2024-01-15,100.50,Widget sale,Sales,Acme,Widget\n"
    "2024-01-16,200,Consulting,Finance,Beta,\n"
    "2024-01-10,75.25,Ads,Marketing,,\n"
)

PARTIAL_CSV = (
    "date,amount,category\n"
    "2024-02-01,10,sales\n"
    ",20,sales\n"
    "2024-02-03,30,ops\n"
    "2024-02-04,abc,sales\n"
    "2024-02-05,50,\n"
)


class TestHappyPath:
    def test_all_rows_accepted(self, orchestrator: UploadOrchestrator) -> None:
        result = orchestrator.process(file_name="sales.csv", content=HAPPY_CSV.encode("utf-8"))

        assert result.file_name == "sales.csv"
        assert result.total_row_count == 3
        assert len(result.accepted_rows) == 3
        assert result.errors == []
        assert result.has_warnings is False
        assert result.accepted_rows[0].amount == Decimal("100.50")
        assert result.accepted_rows[1].product is None

    def test_summary_digest(self, orchestrator: UploadOrchestrator) -> None:
        summary = orchestrator.process(file_name="sales.csv", content=HAPPY_CSV).summary

        assert summary.valid_rows == 3
        assert summary.invalid_rows == 0
        assert summary.categories == ["Sales", "Finance", "Marketing"]
        assert summary.date_range.start == "2024-01-10"
        assert summary.date_range.end == "2024-01-16"
        assert summary.total_amount == Decimal("375.75")

    def test_processing_is_idempotent(self, orchestrator: UploadOrchestrator) -> None:
        first = orchestrator.process(file_name="p.csv", content=PARTIAL_CSV)
        second = orchestrator.process(file_name="p.csv", content=PARTIAL_CSV)

        assert first == second


class TestPartialAcceptance:
    def test_invalid_rows_become_warnings(self, orchestrator: UploadOrchestrator) -> None:
        result = orchestrator.process(file_name="p.csv", content=PARTIAL_CSV)

        assert result.total_row_count == 5
        assert [row.amount for row in result.accepted_rows] == [Decimal("10"), Decimal("30"), Decimal("50")]
        assert result.has_warnings is True
        assert [error.display() for error in result.errors] == [
            "Row 2: date - Date is required",
            "Row 4: amount - Amount must be a valid number",
        ]
        assert [error.code for error in result.errors] == [
            failure_codes.REQUIRED_FIELD_MISSING,
            failure_codes.INVALID_NUMBER,
        ]
        assert result.summary.invalid_rows == 2

    def test_delimiter_only_row_is_counted_and_reported(self, orchestrator: UploadOrchestrator) -> None:
        result = orchestrator.process(file_name="d.csv", content=b"date,amount\n2024-01-15,10\n,\n")

        assert result.total_row_count == 2
        assert len(result.accepted_rows) == 1
        assert [(error.field, error.code) for error in result.errors] == [
            ("date", failure_codes.REQUIRED_FIELD_MISSING),
            ("amount", failure_codes.INVALID_NUMBER),
        ]

    def test_only_delimiter_rows_is_no_valid_rows(self, orchestrator: UploadOrchestrator) -> None:
        with pytest.raises(NoValidRowsError) as exc_info:
            orchestrator.process(file_name="d.csv", content=b"date,amount\n,\n")

        assert exc_info.value.details["errors"] == [
            "Row 1: date - Date is required",
            "Row 1: amount - Amount must be a valid number",
        ]

    def test_no_valid_rows_rejects_the_file(self, orchestrator: UploadOrchestrator) -> None:
        content = "date,amount\n,1\n2024-01-01,x\n"

        with pytest.raises(NoValidRowsError) as exc_info:
            orchestrator.process(file_name="bad.csv", content=content)

        error = exc_info.value
        assert error.code == failure_codes.NO_VALID_ROWS
        assert str(error) == "No valid data rows found"
        assert error.details["errors"] == [
            "Row 1: date - Date is required",
            "Row 2: amount - Amount must be a valid number",
        ]


class TestFileChecks:
    @pytest.mark.parametrize("file_name", ["data.txt", "data.csv.txt", "data", "", "csv"])
    def test_wrong_extension(self, orchestrator: UploadOrchestrator, file_name: str) -> None:
        with pytest.raises(WrongFileTypeError) as exc_info:
            orchestrator.process(file_name=file_name, content=HAPPY_CSV)

        assert exc_info.value.hint == "Please select a CSV file."

    def test_extension_is_case_insensitive(self, orchestrator: UploadOrchestrator) -> None:
        orchestrator.check_file(file_name="EXPORT.CSV", size_bytes=10)

    def test_size_limit_is_inclusive(self) -> None:
        orchestrator = UploadOrchestrator(max_file_bytes=1024)

        orchestrator.check_file(file_name="a.csv", size_bytes=1024)
        with pytest.raises(FileTooLargeError):
            orchestrator.check_file(file_name="a.csv", size_bytes=1025)

    def test_default_limit_message(self, orchestrator: UploadOrchestrator) -> None:
        with pytest.raises(FileTooLargeError) as exc_info:
            orchestrator.check_file(file_name="big.csv", size_bytes=10 * 1024 * 1024 + 1)

        assert str(exc_info.value) == "File size must be less than 10MB."
        assert exc_info.value.code == failure_codes.FILE_TOO_LARGE

    def test_oversized_content_is_rejected_before_decoding(self) -> None:
        orchestrator = UploadOrchestrator(max_file_bytes=16)

        with pytest.raises(FileTooLargeError):
            orchestrator.process(file_name="a.csv", content=b"\xff" * 17)

    def test_missing_amount_column(self, orchestrator: UploadOrchestrator) -> None:
        with pytest.raises(MissingRequiredColumnsError) as exc_info:
            orchestrator.process(file_name="a.csv", content="date,total\n2024-01-01,5\n")

        assert "Missing required columns: amount" in str(exc_info.value)

    def test_header_only_file(self, orchestrator: UploadOrchestrator) -> None:
        with pytest.raises(EmptyFileError) as exc_info:
            orchestrator.process(file_name="a.csv", content="date,amount\n")

        assert exc_info.value.to_dict()["error"] == failure_codes.EMPTY_FILE


class TestLogging:
    def test_rejection_emits_structured_event(
        self,
        orchestrator: UploadOrchestrator,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level(logging.INFO, logger="app.services.upload_orchestrator")

        with pytest.raises(WrongFileTypeError):
            orchestrator.process(file_name="a.xlsx", content=b"")

        events = [json.loads(record.getMessage()) for record in caplog.records if record.getMessage().startswith("{")]
        assert events[-1]["event"] == "upload_rejected"
        assert events[-1]["code"] == failure_codes.WRONG_FILE_TYPE

    def test_row_errors_are_logged_only_when_enabled(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING, logger="app.services.upload_orchestrator")

        UploadOrchestrator(log_validation_errors=False).process(file_name="p.csv", content=PARTIAL_CSV)
        assert not [r for r in caplog.records if "validation error" in r.getMessage()]

        UploadOrchestrator(log_validation_errors=True).process(file_name="p.csv", content=PARTIAL_CSV)
        assert len([r for r in caplog.records if "validation error" in r.getMessage()]) == 2
