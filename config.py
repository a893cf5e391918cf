# config.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    api_base_url: str = "https://api.cocowallet.io/api/v1"
    database_url: str = "wallet_session.db"
    http_pool_size: int = 10
    http_timeout: int = 60
    select_delay: float = 0.1  # seconds
    token_cache_ttl: int = 30000  # milliseconds
    poll_attempts: int = 30
    poll_interval: float = 2.0
    log_file: str = "wallet_session.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

settings = Settings()
