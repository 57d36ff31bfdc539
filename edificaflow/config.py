from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str = "INFO"
    log_dir: str = "logs"
    ai_api_key: str | None = None
    ai_base_url: str = GEMINI_OPENAI_BASE_URL
    ai_model: str = "gemini-3-flash-preview"
    alert_debounce_ms: int = 2000
    notification_cap: int = 50
    upcoming_window_days: int = 2


load_env()

DATABASE_URL = os.getenv("DATABASE_URL", "").strip() or f"sqlite:///{PROJECT_ROOT / 'edificaflow.db'}"

SETTINGS = Settings(
    database_url=DATABASE_URL,
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_dir=os.getenv("LOG_DIR", "logs"),
    ai_api_key=(os.getenv("AI_API_KEY") or os.getenv("GEMINI_API_KEY") or "").strip() or None,
    ai_base_url=os.getenv("AI_BASE_URL", "").strip() or GEMINI_OPENAI_BASE_URL,
    ai_model=os.getenv("AI_MODEL", "").strip() or "gemini-3-flash-preview",
    alert_debounce_ms=_env_int("ALERT_DEBOUNCE_MS", 2000, minimum=1),
    notification_cap=_env_int("NOTIFICATION_CAP", 50, minimum=1),
    upcoming_window_days=_env_int("UPCOMING_WINDOW_DAYS", 2),
)
