"""
Centralised application settings loaded from environment / .env file.
"""
from __future__ import annotations

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env from project root (src/restbi_studio/core -> three levels up)
_ENV_PATH = Path(__file__).resolve().parents[3] / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseSettings):
    # ── Query service ────────────────────────────────────
    restbi_api_url: str = "http://localhost:3000"
    restbi_timeout: float = 30.0

    # ── Query building ───────────────────────────────────
    default_query_limit: int = 100
    option_fetch_limit: int = 100
    drill_query_limit: int = 50

    # ── App ──────────────────────────────────────────────
    api_port: int = 8000
    log_level: str = "INFO"
    sample_models_dir: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
