"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "jobboard"

    # JWT Auth - session tokens live 5 days
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 5 * 24 * 60

    # Credential flows
    otp_expire_minutes: int = 15
    reset_token_expire_minutes: int = 15
    admin_invite_expire_hours: int = 24
    min_password_length: int = 8

    # External ML service (resume parsing / job matching)
    ml_api_url: str = "http://localhost:8001"
    ml_parse_timeout_seconds: float = 60.0
    ml_match_timeout_seconds: float = 10.0

    # Email: "console" logs messages, "smtp" delivers them
    email_backend: str = "console"
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_timeout_seconds: float = 15.0
    email_from: str = "no-reply@jobboard.local"
    email_from_name: str = "Job Board"

    # Links embedded in emails
    frontend_url: str = "http://localhost:3000"
    interview_link_base: str = "https://meet.jit.si/jobboard"

    # Resume storage
    upload_dir: str = "uploads/resumes"
    max_upload_mb: int = 5

    # App
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    debug: bool = True

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
