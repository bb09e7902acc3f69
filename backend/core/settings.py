from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"]


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return max(value, 0.0)


def cors_origins() -> list[str]:
    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    return origins or list(DEFAULT_CORS_ORIGINS)


def uploads_root() -> Path:
    env_root = os.getenv("UPLOADS_ROOT")
    if env_root:
        return Path(env_root).expanduser().resolve()
    return Path(__file__).resolve().parents[2] / "uploads"


def processing_delay() -> float:
    """Seconds the processing engine waits between materials."""

    return _float_env("PROCESSING_DELAY_SECONDS", 2.0)


def research_delay() -> float:
    return _float_env("RESEARCH_DELAY_SECONDS", 1.5)


def log_level() -> str:
    return (os.getenv("LOG_LEVEL") or "INFO").upper()
