from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "TaskMaster API"
    ENV: str = "development"
    LOG_LEVEL: str = Field("INFO", env="LOG_LEVEL")
    APP_URL: str = "http://localhost:3000"

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Persistent store
    # -------------------------------------------------
    # "memory" for local development, "supabase" for production
    STORE_BACKEND: str = Field("memory", env="STORE_BACKEND")
    SUPABASE_URL: Optional[str] = Field(None, env="SUPABASE_URL")
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = Field(None, env="SUPABASE_SERVICE_ROLE_KEY")

    # -------------------------------------------------
    # Object storage (Cloudflare R2, S3-compatible)
    # -------------------------------------------------
    R2_ENDPOINT: Optional[str] = Field(None, env="R2_ENDPOINT")
    R2_ACCESS_KEY_ID: Optional[str] = Field(None, env="R2_ACCESS_KEY_ID")
    R2_SECRET_ACCESS_KEY: Optional[str] = Field(None, env="R2_SECRET_ACCESS_KEY")
    R2_BUCKET_NAME: Optional[str] = Field(None, env="R2_BUCKET_NAME")
    PRESIGNED_URL_EXPIRY_SECONDS: int = 3600

    # -------------------------------------------------
    # SMTP Email Notifications
    # -------------------------------------------------
    SMTP_HOST: Optional[str] = Field(None, env="SMTP_HOST")
    SMTP_PORT: Optional[int] = Field(None, env="SMTP_PORT")
    SMTP_USER: Optional[str] = Field(None, env="SMTP_USER")
    SMTP_PASS: Optional[str] = Field(None, env="SMTP_PASS")
    MAIL_FROM_NAME: str = "TaskMaster Pro"

    # Password reset notices and role-resolution alerts go here
    ADMIN_NOTIFY_EMAIL: Optional[str] = Field(None, env="ADMIN_NOTIFY_EMAIL")

    # -------------------------------------------------
    # Webhook side channel for best-effort failures
    # -------------------------------------------------
    SYNC_WEBHOOK_URL: Optional[str] = Field(None, env="SYNC_WEBHOOK_URL")

    # -------------------------------------------------
    # Dashboard / limits
    # -------------------------------------------------
    LOGS_PAGE_SIZE: int = 15
    PASSWORD_RESET_NOTICE_LIMIT: int = 5
    PASSWORD_RESET_NOTICE_WINDOW_SECONDS: int = 60
    DOCUMENTATION_DOMAIN: str = "Documentation"

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()
