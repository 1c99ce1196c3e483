import os
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration class for environment variables and service settings.
    """
    # Service settings
    service_name: str = os.getenv("SERVICE_NAME", "skillmatch_service")
    environment: str = os.getenv("ENVIRONMENT", "development")
    debug: bool = os.getenv("DEBUG", "True").lower() == "true"

    # Logging settings
    log_level: str = os.getenv("LOG_LEVEL", "DEBUG")
    datadog_api_key: Optional[str] = os.getenv("DD_API_KEY")
    datadog_log_level: str = os.getenv("LOGLEVEL_DATADOG", "WARNING")

    # Override log level for development
    if environment == "development":
        log_level = "DEBUG"

    # Job store settings (the search API polled by the coordinator)
    job_store_base_url: str = os.getenv("JOB_STORE_BASE_URL", "http://localhost:8000/api")
    job_store_timeout: float = float(os.getenv("JOB_STORE_TIMEOUT", "30.0"))
    search_poll_interval: float = float(os.getenv("SEARCH_POLL_INTERVAL", "3.0"))

    # Search store settings
    search_expiration_minutes: int = int(os.getenv("SEARCH_EXPIRATION_MINUTES", "30"))
    search_cleanup_interval: int = int(os.getenv("SEARCH_CLEANUP_INTERVAL", "300"))
    search_demo_fallback: bool = os.getenv("SEARCH_DEMO_FALLBACK", "True").lower() == "true"

    # Workflow (n8n) settings
    n8n_webhook_base_url: str = os.getenv("N8N_WEBHOOK_BASE_URL", "http://localhost:5678/webhook")
    n8n_webhook_auth_header: Optional[str] = os.getenv("N8N_WEBHOOK_AUTH_HEADER")
    n8n_webhook_secret: str = os.getenv("N8N_WEBHOOK_SECRET", "default-for-development")
    n8n_timeout: float = float(os.getenv("N8N_TIMEOUT", "10.0"))

    # Ranking settings
    semantic_weight: float = float(os.getenv("SEMANTIC_WEIGHT", "0.3"))

    # Text embedder settings (OpenAI compatible API)
    text_embedder_model: str = os.getenv("TEXT_EMBEDDER_MODEL", "text-embedding-3-small")
    text_embedder_api_key: str = os.getenv("TEXT_EMBEDDER_API_KEY", "")
    text_embedder_base_url: str = os.getenv("TEXT_EMBEDDER_BASE_URL", "https://api.openai.com/v1")

    # Auth is handled upstream; every request is attributed to this user
    default_user_id: str = os.getenv("DEFAULT_USER_ID", "00000000-0000-0000-0000-000000000001")

    # Listing settings
    matches_default_limit: int = int(os.getenv("MATCHES_DEFAULT_LIMIT", "20"))
    trends_matches_limit: int = int(os.getenv("TRENDS_MATCHES_LIMIT", "50"))

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()

__all__ = ["Settings", "settings"]
