from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    MAX_PLAYERS: int = 10
    DEFAULT_TOTAL_ROUNDS: int = 10

    # Round timer: gameplay window plus network/rendering buffer
    ROUND_DURATION_SEC: float = 30
    ROUND_BUFFER_SEC: float = 5
    # Pause between a round's results and the next round
    RESULTS_DELAY_SEC: float = 3

    @property
    def round_timeout(self) -> float:
        return self.ROUND_DURATION_SEC + self.ROUND_BUFFER_SEC


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
