"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, File, HTTPException, UploadFile, status

from app.domain.upload_errors import FileTooLargeError, UploadRejectedError
from app.services.upload_orchestrator import UploadOrchestrator, get_upload_orchestrator


@dataclass(frozen=True)
class CSVUpload:
    file_name: str
    content: bytes


def upload_error_status(exc: UploadRejectedError) -> int:
    if isinstance(exc, FileTooLargeError):
        return status.HTTP_413_CONTENT_TOO_LARGE
    return status.HTTP_400_BAD_REQUEST


def upload_rejected(exc: UploadRejectedError) -> HTTPException:
    return HTTPException(status_code=upload_error_status(exc), detail=exc.to_dict())


def get_csv_upload(
    file: UploadFile = File(...),
    orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
) -> CSVUpload:
    """
    Check the uploaded file's name and size, then read it into memory.

    At most one byte past the size limit is read, so an oversized upload is
    rejected without buffering all of it.
    """

    file_name = (file.filename or "").strip()
    try:
        orchestrator.check_file(file_name=file_name, size_bytes=file.size or 0)
        content = file.file.read(orchestrator.max_file_bytes + 1)
        orchestrator.check_file(file_name=file_name, size_bytes=len(content))
    except UploadRejectedError as exc:
        raise upload_rejected(exc) from exc
    finally:
        file.file.close()

    return CSVUpload(file_name=file_name, content=content)
