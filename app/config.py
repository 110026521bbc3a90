"""Application configuration."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App settings
    app_name: str = "Scheduled Announcement Bar"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database (session storage)
    database_url: str = "sqlite:///./scheduled_bar.db"

    # Shopify app credentials
    shopify_api_key: str = ""
    shopify_api_secret: str = ""
    shopify_api_version: str = "2025-01"
    shopify_scopes: str = "read_metafields,write_metafields"
    shopify_request_timeout: int = 30

    # Where the bar collection lives on the shop
    metafield_namespace: str = "scheduled_bar"
    metafield_key: str = "settings"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
