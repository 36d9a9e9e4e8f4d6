"""
app/services/tenant_resolver.py

Maps an authenticated principal to its tenant, creating the tenant on first use.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from collections.abc import Callable
from functools import lru_cache

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_tenant_settings, get_upload_settings
from app.logging_utils import log_event
from db.repositories.errors import TenantProvisioningError
from db.repositories.tenant_repository import TenantRepository

logger = logging.getLogger(__name__)

DEFAULT_TENANT_NAME = "Personal Organization"


def derive_tenant_id(principal_id: str) -> uuid.UUID:
    """
    Derive the tenant id for a principal.

    The SHA-256 hex digest of the UTF-8 principal id is laid out as UUID text,
    with the version nibble forced to ``4`` and the variant nibble to ``8``.
    Only 122 of the 256 digest bits survive, so this is a deterministic
    mapping rather than a collision-proof one.
    """

    if not principal_id:
        raise ValueError("principal_id must be a non-empty string.")

    digest = hashlib.sha256(principal_id.encode("utf-8")).hexdigest()
    return uuid.UUID(
        f"{digest[0:8]}-{digest[8:12]}-4{digest[13:16]}-8{digest[17:20]}-{digest[20:32]}"
    )


class TenantResolver:
    """
    Ensures a tenant row exists for a principal before anything references it.

    Two first uploads for the same principal may race. Creation runs in a
    SAVEPOINT; the loser sees a uniqueness violation, re-reads, and treats the
    now-present row as success.

    The tenant scope is set before the lookup and again after a rollback, since
    the organizations table is itself under row-level security.
    """

    def __init__(
        self,
        *,
        default_name: str = DEFAULT_TENANT_NAME,
        repository_factory: Callable[[Session], TenantRepository] = TenantRepository,
        set_tenant_scope: bool = True,
    ) -> None:
        self._default_name = default_name
        self._repository_factory = repository_factory
        self._set_tenant_scope = set_tenant_scope

    def ensure_tenant(self, db: Session, principal_id: str) -> uuid.UUID:
        tenant_id = derive_tenant_id(principal_id)
        repository = self._repository_factory(db)

        try:
            self._scope(repository, tenant_id)
            if repository.exists(tenant_id):
                return tenant_id

            try:
                repository.create(
                    tenant_id=tenant_id,
                    name=self._default_name,
                    settings={},
                )
                db.commit()
            except IntegrityError:
                db.rollback()
                self._scope(repository, tenant_id)
                if not repository.exists(tenant_id):
                    raise TenantProvisioningError(
                        "Tenant creation conflicted but no tenant row was found."
                    )
                logger.info("Tenant %s created concurrently; reusing it.", tenant_id)
                return tenant_id
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Tenant provisioning failed tenant_id=%s", tenant_id)
            raise TenantProvisioningError("Tenant could not be provisioned.") from exc

        log_event(
            logger,
            logging.INFO,
            "tenant_created",
            tenant_id=str(tenant_id),
            name=self._default_name,
        )
        return tenant_id

    def _scope(self, repository: TenantRepository, tenant_id: uuid.UUID) -> None:
        if self._set_tenant_scope:
            repository.set_tenant_scope(tenant_id)


@lru_cache(maxsize=1)
def get_tenant_resolver() -> TenantResolver:
    """
    Build and cache the tenant resolver with env-driven defaults.
    """

    return TenantResolver(
        default_name=get_tenant_settings().default_name,
        set_tenant_scope=get_upload_settings().set_tenant_scope,
    )
