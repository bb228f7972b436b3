from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RESUME_INGEST_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: str = "Resume Ingest API"
    log_level: str = "INFO"

    # Input bounds
    max_upload_bytes: int = 10 * 1024 * 1024
    pipeline_timeout_s: float = 25.0

    # Quality gate
    min_text_chars: int = 100
    line_repetition_threshold: float = 0.7
    corrupted_line_fraction: float = 0.3
    single_char_token_ratio: float = 0.55
    single_char_token_floor: int = 200
    min_scored_line_chars: int = 4

    # Rasterization / OCR
    max_pages: int = 10
    raster_scale: float = 2.0
    ocr_language: str = "eng"
    ocr_timeout_s: float = 30.0
    tesseract_cmd: Optional[str] = None

    # AI / vision (strategy disabled when no key is set)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    vision_temperature: float = 0.1
    vision_max_output_tokens: int = 8192
    ai_timeout_s: float = 30.0

    # Retry
    retry_attempts: int = 3
    retry_initial_delay_s: float = 0.5
    retry_max_delay_s: float = 4.0

    # Extraction cache
    cache_ttl_s: float = 24 * 60 * 60
    cache_max_entries: int = 1000

    @property
    def vision_enabled(self) -> bool:
        return bool(self.gemini_api_key)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
