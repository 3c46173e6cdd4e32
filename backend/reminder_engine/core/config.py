"""
Configuration management using Pydantic Settings.
Loads environment variables from .env file.
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Pending Note Reminders"
    app_version: str = "0.1.0"
    debug: bool = False

    # Supabase Configuration
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Reminder Settings
    # Used when configuracoes.intervalo_cobranca_nota_horas is absent or zero
    default_reminder_interval_hours: int = 24
    digest_max_items: int = 5

    # Approval portal (approve/reject links and footer)
    portal_url: str = "https://hcc.chatconquista.com"

    # Notification transport
    notification_transport: Literal["supabase_function", "webhook", "log"] = "supabase_function"
    notification_function_name: str = "send-notification-gestores"
    notification_webhook_url: Optional[str] = None
    notification_webhook_token: Optional[str] = None
    notification_timeout_seconds: float = 30.0

    # CORS Settings
    cors_origins: str = "*"

    # Scheduler Settings
    enable_scheduler: bool = True
    scheduler_timezone: str = "UTC"
    reminder_cron: str = "0 12 * * *"

    # Only ONE worker should run the scheduler in multi-worker deployments
    run_scheduler: bool = False

    # Job Monitoring
    job_failure_alert_threshold: int = 2

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_service_role_key)

    @property
    def webhook_enabled(self) -> bool:
        """Check if the webhook transport can be used."""
        return bool(self.notification_webhook_url)


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance.
    Call this function to get application settings.
    """
    return Settings()


# Global settings instance
settings = get_settings()
