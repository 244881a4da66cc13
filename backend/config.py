"""
Configuration settings for the garden monitor backend
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Hosted backend (readings table + email function)
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    READINGS_TABLE: str = "sensor_readings"
    EMAIL_FUNCTION: str = "send-alert-email"
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # Storage Configuration
    DB_PATH: str = "data/garden.db"

    # Alert Pipeline
    POLL_INTERVAL_SECONDS: float = 300.0  # 5 minutes
    ALERT_BATCH_SIZE: int = 150
    SERIES_LIMIT: int = 15
    TOAST_DURATION_MS: int = 5000
    MAX_TOASTS: int = 5
    AUTOSTART_POLLING: bool = True

    # Dashboard Data
    OVERVIEW_BATCH_SIZE: int = 100
    DETAIL_FETCH_LIMIT: int = 2000
    ANALYSIS_FETCH_LIMIT: int = 500

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = "config.env"
        case_sensitive = False

    @property
    def email_endpoint(self) -> str:
        if not self.SUPABASE_URL:
            return ""
        return f"{self.SUPABASE_URL.rstrip('/')}/functions/v1/{self.EMAIL_FUNCTION}"
