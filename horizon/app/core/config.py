"""
Central configuration for runtime features and third-party credentials.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    app_env: str
    app_name: str
    debug: bool
    cors_allow_origins: list[str]
    groq_api_key: str
    groq_vision_api_key: str
    groq_model: str
    groq_vision_model: str
    gemini_api_key: str
    gemini_model: str
    gemini_fallback_model: str
    freepik_api_key: str
    bytez_api_key: str
    serper_api_key: str
    elevenlabs_api_key: str
    cloudinary_cloud_name: str
    cloudinary_api_key: str
    cloudinary_api_secret: str
    cloudinary_folder: str
    rate_limit_window_seconds: int
    rate_limit_max_requests: int
    max_upload_bytes: int
    max_audio_bytes: int
    trending_cache_seconds: int
    chat_history_max_messages: int
    chat_db_history_messages: int
    summary_every_messages: int

    @property
    def is_production(self) -> bool:
        return self.app_env in {"prod", "production"}

    @property
    def cloudinary_configured(self) -> bool:
        return bool(self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_str(*names: str, default: str = "") -> str:
    for name in names:
        raw = os.getenv(name)
        if raw and raw.strip():
            return raw.strip()
    return default


def get_settings() -> Settings:
    raw_origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
    if raw_origins.strip() == "*":
        cors_allow_origins = ["*"]
    else:
        cors_allow_origins = [x.strip() for x in raw_origins.split(",") if x.strip()]

    return Settings(
        app_env=os.getenv("APP_ENV", "dev").strip().lower(),
        app_name=os.getenv("APP_NAME", "Horizon"),
        debug=_env_bool("DEBUG", False),
        cors_allow_origins=cors_allow_origins,
        groq_api_key=_env_str("GROQ_API_KEY"),
        groq_vision_api_key=_env_str("IMAGE_GEN_GROQ_API_KEY", "GROQ_API_KEY"),
        groq_model=_env_str("GROQ_MODEL", default="llama-3.3-70b-versatile"),
        groq_vision_model=_env_str("GROQ_VISION_MODEL", default="meta-llama/llama-4-scout-17b-16e-instruct"),
        gemini_api_key=_env_str("GEMINI_API_KEY"),
        gemini_model=_env_str("GEMINI_MODEL", default="gemini-1.5-flash"),
        gemini_fallback_model=_env_str("GEMINI_FALLBACK_MODEL", default="gemini-1.5-pro"),
        freepik_api_key=_env_str("FREEPIK_API_KEY"),
        bytez_api_key=_env_str("BYTEZ_API_KEY"),
        serper_api_key=_env_str("SERPER_API_KEY"),
        elevenlabs_api_key=_env_str("ELEVENLABS_API_KEY"),
        cloudinary_cloud_name=_env_str("CLOUDINARY_CLOUD_NAME"),
        cloudinary_api_key=_env_str("CLOUDINARY_API_KEY"),
        cloudinary_api_secret=_env_str("CLOUDINARY_API_SECRET"),
        cloudinary_folder=_env_str("CLOUDINARY_FOLDER", default="community-feed"),
        rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 60),
        rate_limit_max_requests=_env_int("RATE_LIMIT_MAX_REQUESTS", 20),
        max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
        max_audio_bytes=_env_int("MAX_AUDIO_BYTES", 25 * 1024 * 1024),
        trending_cache_seconds=_env_int("TRENDING_CACHE_SECONDS", 30 * 60),
        chat_history_max_messages=_env_int("CHAT_HISTORY_MAX_MESSAGES", 50),
        chat_db_history_messages=_env_int("CHAT_DB_HISTORY_MESSAGES", 10),
        summary_every_messages=_env_int("SUMMARY_EVERY_MESSAGES", 20),
    )
