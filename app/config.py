"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

DEFAULT_MAX_FILE_BYTES = 10 * 1024 * 1024
DEFAULT_BATCH_SIZE = 100


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_csv_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list from environment variables.
    """

    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return default
    items = tuple(item.strip() for item in raw_value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class UploadSettings:
    """
    Runtime settings for file validation and metric persistence.
    """

    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    batch_size: int = DEFAULT_BATCH_SIZE
    log_validation_errors: bool = True
    set_tenant_scope: bool = True


@dataclass(frozen=True)
class AuthSettings:
    """
    Bearer token verification settings.
    """

    jwt_secret: str | None = None
    jwt_audience: str | None = "authenticated"
    jwt_algorithms: tuple[str, ...] = ("HS256",)


@dataclass(frozen=True)
class TenantSettings:
    """
    Defaults applied to lazily provisioned tenants.
    """

    default_name: str = "Personal Organization"


@lru_cache(maxsize=1)
def get_upload_settings() -> UploadSettings:
    """
    Return cached upload settings from environment variables.
    """

    return UploadSettings(
        max_file_bytes=max(1, _get_int_env("UPLOAD_MAX_FILE_BYTES", DEFAULT_MAX_FILE_BYTES)),
        batch_size=max(1, _get_int_env("UPLOAD_BATCH_SIZE", DEFAULT_BATCH_SIZE)),
        log_validation_errors=_get_bool_env("UPLOAD_LOG_VALIDATION_ERRORS", True),
        set_tenant_scope=_get_bool_env("UPLOAD_SET_TENANT_SCOPE", True),
    )


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """
    Return cached bearer token settings.

    An empty AUTH_JWT_AUDIENCE disables the audience check.
    """

    _load_env_once()
    audience = os.getenv("AUTH_JWT_AUDIENCE", "authenticated").strip() or None
    return AuthSettings(
        jwt_secret=_get_optional_str_env("AUTH_JWT_SECRET"),
        jwt_audience=audience,
        jwt_algorithms=_get_csv_env("AUTH_JWT_ALGORITHMS", ("HS256",)),
    )


@lru_cache(maxsize=1)
def get_tenant_settings() -> TenantSettings:
    """
    Return cached tenant provisioning settings.
    """

    return TenantSettings(
        default_name=_get_str_env("TENANT_DEFAULT_NAME", "Personal Organization"),
    )
