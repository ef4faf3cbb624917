from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash", alias="GEMINI_MODEL")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_BASE_URL",
    )
    gemini_timeout_seconds: float = Field(default=60.0, alias="GEMINI_TIMEOUT_SECONDS")
    gemini_safety_threshold: str = Field(default="BLOCK_NONE", alias="GEMINI_SAFETY_THRESHOLD")

    relay_host: str = Field(default="0.0.0.0", alias="RELAY_HOST")
    relay_port: int = Field(default=3000, alias="RELAY_PORT")
    upload_dir: str = Field(default="uploads", alias="UPLOAD_DIR")
    static_dir: str = Field(default="public", alias="STATIC_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    def model_post_init(self, __context: Any) -> None:  # type: ignore[override]
        self.gemini_base_url = self.gemini_base_url.rstrip("/")
        self.gemini_model = self.gemini_model.strip().removeprefix("models/") or "gemini-1.5-flash"
        self.gemini_safety_threshold = self.gemini_safety_threshold.strip().upper() or "BLOCK_NONE"
        self.log_level = self.log_level.strip().upper() or "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
