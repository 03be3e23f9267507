from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration for product-catalog.

    Values come from the environment (or a local .env file). The OIDC block only
    matters when AUTH_ENABLED is true; the identity provider stays external.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # --- Service ---
    app_name: str = Field(default="product-catalog", validation_alias="APP_NAME")
    app_version: str = Field(default="0.1.0", validation_alias="APP_VERSION")
    environment: str = Field(default="local", validation_alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # CSV allowlist, e.g. "http://localhost:5173,http://127.0.0.1:5173"
    cors_allowed_origins: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ALLOWED_ORIGINS",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

    # --- Identity (OIDC / Keycloak) ---
    auth_enabled: bool = Field(default=True, validation_alias="AUTH_ENABLED")
    oidc_realm: str = Field(default="catalog", validation_alias="KEYCLOAK_REALM")

    # Internal URL (reachable from the service network)
    oidc_internal_base_url: str = Field(
        default="http://keycloak:8080",
        validation_alias="KEYCLOAK_INTERNAL_BASE_URL",
    )

    # Public URL (issuer used by tokens minted via the browser)
    oidc_public_base_url: str = Field(
        default="http://localhost:8080",
        validation_alias="KEYCLOAK_PUBLIC_BASE_URL",
    )

    # Client used as audience and to extract client roles
    oidc_audience: str = Field(default="product-catalog", validation_alias="KEYCLOAK_CLIENT_ID")
    oidc_leeway_seconds: int = Field(default=10, validation_alias="OIDC_LEEWAY_SECONDS")
    oidc_algorithms: str = Field(default="RS256", validation_alias="OIDC_ALGORITHMS")
    oidc_jwks_cache_seconds: int = Field(default=300, validation_alias="OIDC_JWKS_CACHE_SECONDS")
    oidc_http_timeout_seconds: float = Field(default=10.0, validation_alias="OIDC_HTTP_TIMEOUT_SECONDS")

    read_role: str = Field(default="catalog_read", validation_alias="CATALOG_READ_ROLE")
    write_role: str = Field(default="catalog_write", validation_alias="CATALOG_WRITE_ROLE")

    @property
    def oidc_discovery_url(self) -> str:
        base = self.oidc_internal_base_url.rstrip("/")
        return f"{base}/realms/{self.oidc_realm}/.well-known/openid-configuration"

    @property
    def oidc_issuer_expected(self) -> str:
        # Must match the iss claim, which is minted via the PUBLIC base URL.
        base = self.oidc_public_base_url.rstrip("/")
        return f"{base}/realms/{self.oidc_realm}"

    @property
    def oidc_algorithms_list(self) -> list[str]:
        return [a.strip() for a in self.oidc_algorithms.split(",") if a.strip()]

    # -------------------------
    # Database
    # -------------------------
    # Option A: full URL (used as-is when set).
    database_url: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")

    # Option B: pieces
    db_dialect: str = Field(default="postgresql+psycopg", validation_alias="DB_DIALECT")
    db_host: str = Field(default="catalog-db", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_name: str = Field(default="catalog_db", validation_alias="DB_NAME")
    db_user: str = Field(default="catalog_app", validation_alias="DB_USER")
    db_password: Optional[str] = Field(default=None, validation_alias="DB_PASSWORD")

    # Create tables on startup instead of running Alembic (local runs only).
    db_create_schema: bool = Field(default=False, validation_alias="DB_CREATE_SCHEMA")

    @property
    def database_url_resolved(self) -> str:
        """
        Return DATABASE_URL when set; otherwise build it from the DB_* pieces.

        A missing DB_PASSWORD still yields a URL, the connection itself will fail
        if the server requires one.
        """
        if self.database_url and self.database_url.strip():
            return self.database_url.strip()

        pwd = self.db_password or ""
        return f"{self.db_dialect}://{self.db_user}:{pwd}@{self.db_host}:{self.db_port}/{self.db_name}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
