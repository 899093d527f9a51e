"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from past_forward.domain.decades import DECADE_LABELS, normalize_decades

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    gemini_api_key: str
    image_model: str = "gemini-2.5-flash-image"
    text_model: str = "gemini-2.5-flash"
    tts_model: str = "gemini-2.5-flash-preview-tts"
    tts_voice: str = "Kore"
    video_model: str = "veo-3.1-fast-generate-preview"
    video_resolution: str = "720p"
    generation_concurrency: int = 2
    retry_attempts: int = 3
    retry_initial_delay_seconds: float = 1.0
    video_poll_interval_seconds: float = 10.0
    default_decades: str | None = None
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_decade_list(raw: str | None) -> tuple[str, ...]:
    """Parse a comma-separated decade list from env.

    Empty input or ``*`` selects every known decade.
    """
    if raw is None:
        return DECADE_LABELS
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return DECADE_LABELS
    return normalize_decades(
        [chunk.strip() for chunk in cleaned.split(",") if chunk.strip()]
    )
