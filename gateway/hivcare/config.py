"""Configuration management for the HIV Care gateway."""

import logging.config
from typing import List

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    app_name: str = "HIV Care"
    version: str = "0.1.0"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    timezone: str = "Asia/Jakarta"

    # Public URL of the web client, used for links sent by email
    app_base_url: str = "http://localhost:5173"

    # Supabase
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""
    supabase_service_key: str = ""
    supabase_jwt_secret: str = ""

    # JWT
    jwt_audience: str = "authenticated"
    jwt_algorithm: str = "HS256"

    # Storage
    lab_results_bucket: str = "lab-results"
    lab_upload_max_bytes: int = 5 * 1024 * 1024
    lab_upload_types: List[str] = Field(
        default=["image/jpeg", "image/png", "image/webp"]
    )

    # Periodic checks
    maintenance_check_seconds: int = 60
    reminder_poll_seconds: int = 60

    # Email (Resend)
    resend_api_key: str = ""
    resend_api_url: str = "https://api.resend.com/emails"
    email_from: str = "HIV Care <noreply@hiv.esgul.com>"

    # CORS
    allowed_origins: List[str] = Field(default=["http://localhost:5173"])

    # Monitoring
    enable_metrics: bool = True
    metrics_path: str = "/metrics"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def get_cors_origins(self) -> List[str]:
        """Parse CORS origins from string or list."""
        if isinstance(self.allowed_origins, str):
            return [origin.strip() for origin in self.allowed_origins.split(",")]
        return self.allowed_origins

    @property
    def reset_password_url(self) -> str:
        return f"{self.app_base_url.rstrip('/')}/reset-password"


# Global settings instance
settings = Settings()


# Logging configuration
def get_logging_config():
    """Get structured logging configuration."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processor": structlog.dev.ConsoleRenderer(),
                "foreign_pre_chain": [
                    structlog.stdlib.add_log_level,
                    structlog.processors.TimeStamper(fmt="iso"),
                ],
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console"],
                "level": settings.log_level,
                "propagate": True,
            },
        },
    }


def configure_logging():
    """Route structlog and stdlib logging through the same console handler."""
    logging.config.dictConfig(get_logging_config())
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Security configuration
SECURITY_CONFIG = {
    "password_min_length": 6,
    "full_name_min_length": 2,
    "full_name_max_length": 100,
    "super_admin_name": "Super Admin",
}


# Backend table names
TABLES = {
    "profiles": "profiles",
    "user_roles": "user_roles",
    "medication_schedules": "medication_schedules",
    "medication_logs": "medication_logs",
    "daily_health_logs": "daily_health_logs",
    "lab_results": "lab_results",
    "control_schedules": "control_schedules",
    "education_articles": "education_articles",
    "education_videos": "education_videos",
    "app_settings": "app_settings",
}
