"""
app/api/routers/upload.py

Upload HTTP endpoints: validate a CSV, commit transactions, list data sources.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.auth import AuthContext, get_auth_context
from app.api.dependencies import CSVUpload, get_csv_upload, upload_rejected
from app.domain.persistence import IngestionResult
from app.domain.transactions import DateRange, RowValidationError, TransactionRecord
from app.domain.upload_errors import UploadRejectedError
from app.schemas.upload import (
    DataSourceListResponse,
    DataSourceResponse,
    DateRangeResponse,
    IngestionSummaryResponse,
    RowErrorResponse,
    TransactionRecordPayload,
    UploadRequest,
    UploadResponse,
    UploadResultData,
    ValidationResultResponse,
    ValidationSummaryResponse,
)
from app.services.upload_ingestion_service import (
    UploadIngestionRequest,
    UploadIngestionService,
    get_upload_ingestion_service,
)
from app.services.upload_orchestrator import UploadOrchestrator, get_upload_orchestrator
from db.models.data_source import DataSourceType
from db.repositories.errors import DataSourceCreateError, TenantProvisioningError
from db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])

INTERNAL_ERROR_DETAIL = "Internal server error"


@router.post("", response_model=UploadResponse)
def submit_upload(
    payload: UploadRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
    ingestion_service: UploadIngestionService = Depends(get_upload_ingestion_service),
) -> UploadResponse:
    """
    Persist pre-validated transactions as business metrics for the caller's tenant.
    """

    request = UploadIngestionRequest(
        records=[_to_record(row) for row in payload.data],
        file_name=payload.file_name,
        source_type=payload.data_source_type,
    )
    result = _ingest(ingestion_service, db=db, principal_id=auth.principal_id, request=request)
    return _upload_response(result)


@router.get("", response_model=DataSourceListResponse)
def list_uploads(
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
    ingestion_service: UploadIngestionService = Depends(get_upload_ingestion_service),
) -> DataSourceListResponse:
    """
    List the caller's data sources, newest first.
    """

    try:
        data_sources = ingestion_service.list_data_sources(db, auth.principal_id)
    except SQLAlchemyError as exc:
        logger.exception("Listing data sources failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR_DETAIL,
        ) from exc

    return DataSourceListResponse(
        data=[DataSourceResponse.model_validate(data_source) for data_source in data_sources],
    )


@router.post("/validate", response_model=ValidationResultResponse)
def validate_upload(
    upload: CSVUpload = Depends(get_csv_upload),
    orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
) -> ValidationResultResponse:
    """
    Decode and validate one CSV file without persisting anything.
    """

    try:
        result = orchestrator.process(file_name=upload.file_name, content=upload.content)
    except UploadRejectedError as exc:
        raise upload_rejected(exc) from exc

    summary = result.summary
    return ValidationResultResponse(
        file_name=result.file_name,
        total_row_count=result.total_row_count,
        accepted_rows=[
            TransactionRecordPayload.model_validate(row, from_attributes=True)
            for row in result.accepted_rows
        ],
        errors=[_row_error(error) for error in result.errors],
        summary=ValidationSummaryResponse(
            total_rows=summary.total_rows,
            valid_rows=summary.valid_rows,
            invalid_rows=summary.invalid_rows,
            categories=summary.categories,
            date_range=_date_range(summary.date_range),
            total_amount=summary.total_amount,
        ),
    )


@router.post("/csv", response_model=UploadResponse)
def upload_csv(
    auth: AuthContext = Depends(get_auth_context),
    upload: CSVUpload = Depends(get_csv_upload),
    db: Session = Depends(get_db),
    orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
    ingestion_service: UploadIngestionService = Depends(get_upload_ingestion_service),
) -> UploadResponse:
    """
    Validate one CSV file and persist its accepted rows in a single request.

    Rejected rows are returned as warnings next to the ingestion result.
    """

    try:
        validated = orchestrator.process(file_name=upload.file_name, content=upload.content)
    except UploadRejectedError as exc:
        raise upload_rejected(exc) from exc

    request = UploadIngestionRequest(
        records=validated.accepted_rows,
        file_name=validated.file_name,
        source_type=DataSourceType.CSV,
    )
    result = _ingest(ingestion_service, db=db, principal_id=auth.principal_id, request=request)
    response = _upload_response(result)
    response.data.warnings = [_row_error(error) for error in validated.errors]
    return response


def _ingest(
    ingestion_service: UploadIngestionService,
    *,
    db: Session,
    principal_id: str,
    request: UploadIngestionRequest,
) -> IngestionResult:
    try:
        return ingestion_service.ingest(db, principal_id, request)
    except TenantProvisioningError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Tenant could not be provisioned. Please retry shortly.",
        ) from exc
    except DataSourceCreateError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR_DETAIL,
        ) from exc
    except SQLAlchemyError as exc:
        logger.exception("Upload ingestion failed file=%r", request.file_name)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR_DETAIL,
        ) from exc


def _to_record(row: TransactionRecordPayload) -> TransactionRecord:
    return TransactionRecord(
        date=row.date,
        amount=row.amount,
        description=row.description,
        category=row.category,
        customer=row.customer,
        product=row.product,
    )


def _row_error(error: RowValidationError) -> RowErrorResponse:
    return RowErrorResponse(
        row=error.row_number,
        field=error.field,
        code=error.code,
        message=error.display(),
        value=error.value,
    )


def _date_range(value: DateRange) -> DateRangeResponse:
    return DateRangeResponse(start=value.start, end=value.end)


def _upload_response(result: IngestionResult) -> UploadResponse:
    summary = result.summary
    return UploadResponse(
        data=UploadResultData(
            data_source_id=result.data_source_id,
            metrics_created=result.metrics_created,
            file_name=result.file_name,
            summary=IngestionSummaryResponse(
                total_rows=summary.total_rows,
                processed_rows=summary.processed_rows,
                failed_rows=summary.failed_rows,
                failed_batches=summary.failed_batches,
                categories=summary.categories,
                date_range=_date_range(summary.date_range),
            ),
        ),
    )
