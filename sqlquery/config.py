"""Application configuration"""
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Query plugin endpoint
    plugin_base_url: str = "http://localhost:8000"
    plugin_path_prefix: str = "/api/plugins/postgresql"
    query_database: str = "shannon"
    logging_database: str = "liffey"

    # Transport
    transport_mode: Literal["http", "direct"] = "http"
    query_timeout_seconds: float = 30.0

    # Lineage
    lineage_row_limit: int = 10
    lineage_source_filter: str = "Airflow"
    lineage_relation_mode: Literal["array", "regex"] = "array"

    # Raw SQL tool
    raw_sql_read_only: bool = False

    # Extension settings persistence
    extension_settings_path: str = "data/extension_settings.json"
    settings_save_debounce_seconds: float = 1.0

    # Weather provider
    weather_base_url: str = "http://dataservice.accuweather.com"
    location_cache_max_size: int = 256
    location_cache_ttl_seconds: int = 86400

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
