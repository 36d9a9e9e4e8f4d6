"""
Repository-layer exceptions for tenant and data source flows.
"""

from __future__ import annotations

from app import failure_codes


class RepositoryError(Exception):
    """Base exception for store-side failures surfaced to services."""

    code: str = "StoreError"


class TenantProvisioningError(RepositoryError):
    """Raised when a tenant cannot be looked up or created for a reason other than a uniqueness race."""

    code = failure_codes.TENANT_PROVISIONING_FAILED


class DataSourceCreateError(RepositoryError):
    """Raised when the data source row for an upload cannot be created."""

    code = failure_codes.DATA_SOURCE_CREATE_FAILED
