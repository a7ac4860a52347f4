from enum import Enum
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class VerificationPolicy(str, Enum):
    """How registration treats email verification"""
    GATED = "gated"
    AUTO_VERIFIED = "auto_verified"


class Settings(BaseSettings):
    """Application settings"""

    environment: str = "development"

    # Database
    database_url: str = "sqlite:///./accounts.db"
    sql_echo: bool = False
    auto_create_db: bool = True

    # Application
    app_name: str = "Bid Accounts API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    # Accounts
    verification_policy: VerificationPolicy = VerificationPolicy.GATED
    verification_token_ttl_hours: int = 24
    password_hash_rounds: int = 10
    frontend_url: str = "http://localhost:3000"
    expose_verification_token: bool = False

    # Email
    email_backend: str = "console"  # console | smtp | disabled
    email_subject_prefix: str = "Bid Platform"
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    smtp_from: Optional[str] = None
    smtp_from_email: Optional[str] = None
    smtp_from_name: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    @property
    def is_gated(self) -> bool:
        return self.verification_policy == VerificationPolicy.GATED


# Global settings instance
settings = Settings()
