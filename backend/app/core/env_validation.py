"""
Runtime Environment Validation Module

Validates the required environment variables when the application starts.
If validation fails, the application refuses to start (hard fail).
"""

import os
import sys
from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProductionSettings(BaseSettings):
    """
    Strict validation schema for production environment variables.

    All required fields MUST be present and valid, or the application will not start.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # CRITICAL: Database Configuration
    # ========================================================================
    database_url: str  # REQUIRED: PostgreSQL connection string

    # ========================================================================
    # CRITICAL: Firebase Authentication
    # ========================================================================
    firebase_project_id: str
    google_application_credentials: Optional[str] = None

    # ========================================================================
    # CRITICAL: Storage Provider
    # ========================================================================
    storage_provider: str  # REQUIRED: "gcs" or "s3"

    gcs_bucket_name: Optional[str] = None
    gcs_project_id: Optional[str] = None

    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: Optional[str] = None
    s3_bucket_name: Optional[str] = None

    # ========================================================================
    # Application Configuration
    # ========================================================================
    app_name: str = "Estates Back Office"
    debug: bool = False
    api_v1_prefix: str = "/v1"

    # ========================================================================
    # CRITICAL: CORS Configuration
    # ========================================================================
    allowed_origins: str  # REQUIRED: Comma-separated list of allowed origins

    # ========================================================================
    # Optional: Upload Configuration
    # ========================================================================
    presign_ttl_seconds: int = 300
    max_upload_size_mb: int = 50
    max_document_size_mb: int = 50
    max_import_size_mb: int = 10


def _fail(message: str) -> None:
    print(f"❌ FATAL: {message}", file=sys.stderr)
    sys.exit(1)


def validate_environment() -> ProductionSettings:
    """
    Validate all required environment variables at startup.

    Returns:
        ProductionSettings: Validated settings object

    Raises:
        SystemExit: If validation fails (exit code 1)
    """
    try:
        settings = ProductionSettings()
    except ValidationError as e:
        print("❌ FATAL: Environment validation failed", file=sys.stderr)
        print("\nMissing or invalid environment variables:", file=sys.stderr)
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            print(f"   • {field}: {error['msg']}", file=sys.stderr)
        print("\nPlease check your .env file or environment variables.", file=sys.stderr)
        sys.exit(1)

    # 1. CORS: no wildcard outside debug
    if not settings.debug:
        origins = [o.strip() for o in settings.allowed_origins.split(",")]
        if "*" in origins:
            _fail("Wildcard CORS origin (*) detected in production mode. Set ALLOWED_ORIGINS to specific domains.")

    # 2. Storage provider settings
    if settings.storage_provider == "gcs":
        if not settings.gcs_bucket_name or not settings.gcs_project_id:
            _fail("GCS_BUCKET_NAME and GCS_PROJECT_ID required when STORAGE_PROVIDER=gcs")
    elif settings.storage_provider == "s3":
        if not settings.s3_bucket_name or not settings.aws_access_key_id or not settings.aws_secret_access_key:
            _fail("S3_BUCKET_NAME, AWS_ACCESS_KEY_ID, and AWS_SECRET_ACCESS_KEY required when STORAGE_PROVIDER=s3")
    else:
        _fail(f"Invalid STORAGE_PROVIDER '{settings.storage_provider}'. Must be 'gcs' or 's3'.")

    # 3. Firebase credentials path
    if settings.google_application_credentials and not os.path.exists(settings.google_application_credentials):
        _fail(f"Firebase credentials file not found: {settings.google_application_credentials}")

    # 4. Database URL
    if not settings.database_url.startswith("postgresql"):
        _fail("DATABASE_URL must be a PostgreSQL connection string (postgresql:// or postgresql+asyncpg://)")

    print("✅ Environment validation passed")
    print(f"   App: {settings.app_name}")
    print(f"   Debug: {settings.debug}")
    print(f"   Storage: {settings.storage_provider}")
    print(f"   CORS Origins: {settings.allowed_origins}")

    return settings


if __name__ == "__main__":
    validate_environment()
    print("\n✅ All environment variables are valid!")
