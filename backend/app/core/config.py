"""
Configuration management using Pydantic Settings
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from project root
# config.py is at: backend/app/core/config.py
_current_file = Path(__file__).resolve()
_backend_dir = _current_file.parent.parent.parent
_project_root = _backend_dir.parent
ENV_FILE = _project_root / ".env"
# Fallback: try in backend/ directory if not found in project root
if not ENV_FILE.exists():
    ENV_FILE = _backend_dir / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Prompt Hub"
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API port")
    allowed_origins: str = Field(
        default="http://localhost:8000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Logging
    log_sqlalchemy: bool = Field(default=False, description="Enable SQLAlchemy query logging")
    log_uvicorn_access: bool = Field(default=False, description="Enable Uvicorn access logging")
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"app.api": "DEBUG"})'
    )
    log_format: str = Field(
        default="json",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_file_enabled: bool = Field(default=True, description="Enable file logging")
    log_file_path: str = Field(
        default="logs/prompthub.log",
        description="Path to log file (relative to project root)"
    )
    log_file_retention: int = Field(
        default=30,
        ge=1,
        description="Number of days to keep log files"
    )
    log_sensitive_data: bool = Field(
        default=False,
        description="Enable logging of sensitive data (passwords, tokens) - NOT RECOMMENDED"
    )

    # Database
    # Either a full SQLAlchemy URL or the POSTGRES_* parts
    database_url_override: Optional[str] = Field(
        default=None,
        alias="database_url",
        description="Full SQLAlchemy database URL"
    )
    postgres_host: Optional[str] = Field(default=None, description="PostgreSQL host")
    postgres_db: Optional[str] = Field(default=None, description="PostgreSQL database name")
    postgres_user: Optional[str] = Field(default=None, description="PostgreSQL user")
    postgres_password: Optional[str] = Field(default=None, description="PostgreSQL password")
    postgres_port: int = Field(default=5432, ge=1, le=65535, description="PostgreSQL port")
    database_pool_size: int = Field(default=10, ge=1, description="Database pool size")
    database_max_overflow: int = Field(default=10, ge=0, description="Database max overflow")

    # Identity provider
    identity_jwt_key: Optional[str] = Field(
        default=None,
        description="Key used to verify session tokens (HMAC secret or PEM public key)"
    )
    identity_jwks_url: Optional[str] = Field(
        default=None,
        description="JWKS endpoint of the identity provider (used when no static key is set)"
    )
    identity_jwt_algorithms: str = Field(
        default="RS256",
        description="Accepted token algorithms (comma-separated)"
    )
    identity_issuer: Optional[str] = Field(default=None, description="Expected token issuer")
    identity_audience: Optional[str] = Field(default=None, description="Expected token audience")
    identity_session_cookie: str = Field(
        default="__session",
        description="Cookie carrying the session token"
    )
    identity_sign_in_url: str = Field(
        default="/sign-in",
        description="Where anonymous users are sent for protected pages"
    )
    webhook_signing_secret: str = Field(..., description="Identity provider webhook signing secret (whsec_...)")

    # Repositories and versions
    repositories_page_size: int = Field(default=9, ge=1, le=100, description="Public listing page size")
    version_insert_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts at assigning a version number before reporting a conflict"
    )

    @model_validator(mode="after")
    def check_required_sources(self) -> "Settings":
        """Fail fast when the database or token verification source is missing"""
        if not self.database_url_override and not (
            self.postgres_host and self.postgres_db and self.postgres_user
        ):
            raise ValueError(
                "DATABASE_URL or POSTGRES_HOST/POSTGRES_DB/POSTGRES_USER must be set"
            )
        if not self.identity_jwt_key and not self.identity_jwks_url:
            raise ValueError("IDENTITY_JWT_KEY or IDENTITY_JWKS_URL must be set")
        return self

    @property
    def database_url(self) -> str:
        """Construct database URL"""
        if self.database_url_override:
            return self.database_url_override
        password = f":{self.postgres_password}" if self.postgres_password else ""
        return (
            f"postgresql://{self.postgres_user}{password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def identity_jwt_algorithms_list(self) -> List[str]:
        """Parse accepted token algorithms from comma-separated string"""
        return [alg.strip() for alg in self.identity_jwt_algorithms.split(",") if alg.strip()]

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
