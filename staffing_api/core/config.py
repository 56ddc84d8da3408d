from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "Staffing Directory API"
    app_env: str = "development"
    app_port: int = 8000
    frontend_url: str = "http://localhost:3000"
    site_url: str = Field(default="http://localhost:3000", alias="SITE_URL")
    max_upload_size_mb: int = 10

    # Database (Postgres via asyncpg in production, SQLite for local dev)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./staffing_dev.db",
        alias="DATABASE_URL",
    )

    # Bearer tokens issued by the auth provider
    jwt_secret: str = Field(default="change-me", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_audience: str | None = Field(default=None, alias="JWT_AUDIENCE")

    # Object storage (S3-compatible)
    compliance_bucket: str = Field(
        default="compliance-documents", alias="COMPLIANCE_BUCKET",
    )
    s3_region: str = Field(default="us-east-1", alias="S3_REGION")
    s3_endpoint_url: str | None = Field(default=None, alias="S3_ENDPOINT_URL")
    aws_access_key_id: str | None = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str | None = Field(default=None, alias="AWS_SECRET_ACCESS_KEY")
    signed_url_ttl_seconds: int = Field(
        default=7 * 24 * 60 * 60, alias="SIGNED_URL_TTL_SECONDS",
    )  # compliance documents stay viewable for a week

    # Transactional email
    email_api_key: str | None = Field(default=None, alias="EMAIL_API_KEY")
    email_api_url: str = Field(
        default="https://api.resend.com/emails", alias="EMAIL_API_URL",
    )
    email_sender: str = Field(
        default="FindConstructionStaffing <noreply@findconstructionstaffing.com>",
        alias="EMAIL_SENDER",
    )
    email_timeout: float = Field(default=15.0, alias="EMAIL_TIMEOUT")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

settings = Settings()
