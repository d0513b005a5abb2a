from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG,
    DATA_DIR, DB_FILENAME, RATE_SOURCE, RATES_CACHE_TTL_SECONDS).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Currency Conversion Service"
    debug: bool = False
    version: str = "1.0.0"

    # Logging
    log_level: Optional[str] = None  # overrides debug when set (e.g. "WARNING")
    log_dir: Optional[Path] = None  # enables rotating error.log / combined.log

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "app.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    # Exchange rates
    # Allowed: 'coinbase' (live HTTP), 'static' (built-in fixed rates for local runs)
    rate_source: str = "coinbase"
    coinbase_api_url: str = "https://api.coinbase.com/v2"
    http_timeout_seconds: float = 5.0
    rates_cache_ttl_seconds: int = 300  # 5 minutes
    rates_coalesce_fetches: bool = True

    # Daily quota
    quota_window_seconds: int = 86400  # 24 hours
    quota_weekday_limit: int = 100
    quota_weekend_limit: int = 200

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        # Ensure persistence directory exists
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        # Normalize / validate rate source
        self.rate_source = self.rate_source.lower()
        allowed = {"coinbase", "static"}
        if self.rate_source not in allowed:
            raise ValueError(
                f"Unsupported rate_source '{self.rate_source}'. Allowed: {allowed}"
            )
        if self.rates_cache_ttl_seconds <= 0:
            raise ValueError("rates_cache_ttl_seconds must be positive")
        if self.quota_window_seconds <= 0:
            raise ValueError("quota_window_seconds must be positive")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
