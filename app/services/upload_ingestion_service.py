"""
app/services/upload_ingestion_service.py

Service layer for committing validated transactions to the store.

Flow for one upload:

    1. TenantResolver.ensure_tenant()     - derive the tenant id, create on first use
    2. DataSourceRepository.create()      - one data source row per upload
    3. PersistenceBatcher.persist()       - metrics in independent batches
    4. DataSourceRepository.mark_synced() - best effort; failure is logged only
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_upload_settings
from app.domain.persistence import IngestionResult, IngestionSummary
from app.domain.transactions import TransactionRecord, date_range, distinct_categories
from app.logging_utils import log_event
from app.services.persistence_batcher import PersistenceBatcher, get_persistence_batcher
from app.services.tenant_resolver import TenantResolver, derive_tenant_id, get_tenant_resolver
from db.models.data_source import DataSource, DataSourceType
from db.repositories.data_source_repository import DataSourceRepository
from db.repositories.errors import DataSourceCreateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadIngestionRequest:
    records: Sequence[TransactionRecord]
    file_name: str
    source_type: str = DataSourceType.CSV


class UploadIngestionService:
    """
    Coordinates tenant provisioning, data source bookkeeping, and metric writes.

    Each transaction that touches data_sources sets the tenant scope first.
    """

    def __init__(
        self,
        *,
        tenant_resolver: TenantResolver,
        batcher: PersistenceBatcher,
        data_source_repository_factory: Callable[[Session], DataSourceRepository] = DataSourceRepository,
        set_tenant_scope: bool = True,
    ) -> None:
        self._tenant_resolver = tenant_resolver
        self._batcher = batcher
        self._data_source_repository_factory = data_source_repository_factory
        self._set_tenant_scope = set_tenant_scope

    def ingest(
        self,
        db: Session,
        principal_id: str,
        request: UploadIngestionRequest,
        *,
        should_stop: Callable[[], bool] | None = None,
    ) -> IngestionResult:
        """
        Persist ``request.records`` for the principal's tenant.

        Raises ``TenantProvisioningError`` or ``DataSourceCreateError``; batch
        failures never raise and are reported in the result's outcome.
        """

        tenant_id = self._tenant_resolver.ensure_tenant(db, principal_id)
        repository = self._data_source_repository_factory(db)
        data_source = self._create_data_source(db, repository, tenant_id=tenant_id, request=request)

        outcome = self._batcher.persist(
            db,
            tenant_id,
            request.records,
            source=f"{request.source_type}:{request.file_name}",
            data_source_id=data_source.id,
            should_stop=should_stop,
        )

        self._mark_synced(
            db,
            repository,
            tenant_id=tenant_id,
            data_source_id=data_source.id,
            processed_rows=outcome.persisted_count,
        )

        summary = IngestionSummary(
            total_rows=len(request.records),
            processed_rows=outcome.persisted_count,
            failed_rows=outcome.failed_count,
            failed_batches=len(outcome.failed),
            categories=distinct_categories(request.records),
            date_range=date_range(request.records),
        )
        logger.info(
            "Upload ingested tenant_id=%s data_source_id=%s file=%r total=%s processed=%s failed=%s",
            tenant_id,
            data_source.id,
            request.file_name,
            summary.total_rows,
            summary.processed_rows,
            summary.failed_rows,
        )
        return IngestionResult(
            data_source_id=data_source.id,
            tenant_id=tenant_id,
            file_name=request.file_name,
            outcome=outcome,
            summary=summary,
        )

    def list_data_sources(self, db: Session, principal_id: str) -> list[DataSource]:
        """
        List the principal's data sources, newest first.

        Never provisions a tenant: a principal without one simply has none.
        """

        tenant_id = derive_tenant_id(principal_id)
        repository = self._data_source_repository_factory(db)
        self._scope(repository, tenant_id)
        return repository.list_for_tenant(tenant_id)

    def _create_data_source(
        self,
        db: Session,
        repository: DataSourceRepository,
        *,
        tenant_id: uuid.UUID,
        request: UploadIngestionRequest,
    ) -> DataSource:
        config = {
            "fileName": request.file_name,
            "uploadedAt": datetime.now(tz=timezone.utc).isoformat(),
            "rowCount": len(request.records),
        }
        try:
            self._scope(repository, tenant_id)
            data_source = repository.create(
                tenant_id=tenant_id,
                source_type=request.source_type,
                name=request.file_name[:100],
                config=config,
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception(
                "Data source creation failed tenant_id=%s file=%r", tenant_id, request.file_name
            )
            raise DataSourceCreateError("Failed to create data source.") from exc
        return data_source

    def _mark_synced(
        self,
        db: Session,
        repository: DataSourceRepository,
        *,
        tenant_id: uuid.UUID,
        data_source_id: uuid.UUID,
        processed_rows: int,
    ) -> None:
        try:
            self._scope(repository, tenant_id)
            synced = repository.mark_synced(
                data_source_id=data_source_id,
                tenant_id=tenant_id,
                synced_at=datetime.now(tz=timezone.utc),
                processed_rows=processed_rows,
            )
            if synced is None:
                db.rollback()
                self._log_sync_failed(tenant_id, data_source_id, reason="DataSourceNotFound")
                return
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            self._log_sync_failed(tenant_id, data_source_id, reason=exc.__class__.__name__)

    def _log_sync_failed(self, tenant_id: uuid.UUID, data_source_id: uuid.UUID, *, reason: str) -> None:
        log_event(
            logger,
            logging.WARNING,
            "data_source_sync_failed",
            tenant_id=str(tenant_id),
            data_source_id=str(data_source_id),
            reason=reason,
        )

    def _scope(self, repository: DataSourceRepository, tenant_id: uuid.UUID) -> None:
        if self._set_tenant_scope:
            repository.set_tenant_scope(tenant_id)


@lru_cache(maxsize=1)
def get_upload_ingestion_service() -> UploadIngestionService:
    """
    Build and cache the ingestion service with env-driven collaborators.
    """

    return UploadIngestionService(
        tenant_resolver=get_tenant_resolver(),
        batcher=get_persistence_batcher(),
        set_tenant_scope=get_upload_settings().set_tenant_scope,
    )
