from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for role repair and storage uploads

    # AWS S3 (will read from uppercase env vars automatically)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None
    s3_public_base_url: Optional[str] = None  # e.g. CloudFront origin; defaults to the bucket URL

    # Avatars
    avatars_bucket: str = "avatars"
    avatar_max_bytes: int = 5 * 1024 * 1024

    # Role resolution
    role_max_attempts: int = 5
    role_retry_delay: float = 1.0  # seconds between attempts
    role_resolution_timeout: float = 8.0  # seconds; falls back to "user"
    session_cache_ttl: int = 3600  # seconds a resolved role is kept for a session
    allow_admin_signup: bool = False  # redeem role=admin from signup metadata

    # Domain limits
    message_max_length: int = 4000
    report_page_size: int = 500

    # App
    app_name: str = "skillswap-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def s3_configured(self) -> bool:
        return all([self.aws_access_key_id, self.aws_secret_access_key, self.s3_bucket_name])

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
