"""
Repository layer exports.
"""

from db.repositories.data_source_repository import DataSourceRepository
from db.repositories.errors import DataSourceCreateError, RepositoryError, TenantProvisioningError
from db.repositories.tenant_repository import TenantRepository
from db.repositories.tenant_scope import TENANT_SETTING, set_tenant_scope

__all__ = [
    "DataSourceCreateError",
    "DataSourceRepository",
    "RepositoryError",
    "TenantProvisioningError",
    "TENANT_SETTING",
    "TenantRepository",
    "set_tenant_scope",
]
