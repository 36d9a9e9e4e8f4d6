"""
app/services package marker.
"""

from app.services.persistence_batcher import PersistenceBatcher, get_persistence_batcher
from app.services.tenant_resolver import TenantResolver, derive_tenant_id, get_tenant_resolver
from app.services.upload_ingestion_service import (
    UploadIngestionRequest,
    UploadIngestionService,
    get_upload_ingestion_service,
)
from app.services.upload_orchestrator import UploadOrchestrator, get_upload_orchestrator

__all__ = [
    "PersistenceBatcher",
    "get_persistence_batcher",
    "TenantResolver",
    "derive_tenant_id",
    "get_tenant_resolver",
    "UploadIngestionRequest",
    "UploadIngestionService",
    "get_upload_ingestion_service",
    "UploadOrchestrator",
    "get_upload_orchestrator",
]
