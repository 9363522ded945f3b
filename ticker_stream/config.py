import logging
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


# Get the directory where this config.py file is located
_config_dir = Path(__file__).parent
_env_file = _config_dir.parent / ".env"  # project root .env


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_env_file),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # Stream pacing
    pace_interval_seconds: float = 2.0  # delay between frames on one connection
    write_timeout_seconds: float | None = None  # None = wait on the client indefinitely

    # Simulated market
    price_min: float = 180.0
    price_max: float = 185.0
    halt_reason: str = "Volatility pause"
    halt_duration_minutes: int = 100

    # Process-wide random source; set for reproducible streams
    random_seed: int | None = None

    def get_log_level(self) -> int:
        """Resolve log_level name to a logging constant (defaults to INFO)."""
        level = logging.getLevelName(self.log_level.strip().upper())
        return level if isinstance(level, int) else logging.INFO


def get_settings() -> Settings:
    return Settings()
