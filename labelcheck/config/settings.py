from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    service_provider: str = "http"
    service_base_url: str = "http://localhost:5000"
    service_timeout_seconds: int = 120

    health_path: str = "/health"
    health_poll_interval_seconds: float = 10.0
    health_timeout_seconds: float = 5.0

    progress_tick_seconds: float = 0.1
    progress_reset_delay_seconds: float = 1.5
    progress_image_seconds: float = 12.0
    progress_paged_document_seconds: float = 30.0
    progress_scale_by_page_count: bool = False

    pdf_engine: str = "pdfplumber"

    preferences_path: str = "~/.labelcheck/preferences.json"
