from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Exchange rates
    exchange_rates_url: str = ""  # empty = built-in mock feed
    exchange_rates_timeout: float = 10.0
    rates_refresh_interval_minutes: int = 60
    rates_stale_after_minutes: int = 60
    default_currency: str = "USD"

    # Ranking
    diversity_brand_penalty: float = 0.1
    diversity_neighborhood_penalty: float = 0.2
    diversity_neighborhood_threshold: int = 2
    default_soft_weight: float = 0.1
    max_results: int = 50

    # Scheduler
    scheduler_enabled: bool = True

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    # CORS
    cors_origins: str = "http://localhost:5173"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
