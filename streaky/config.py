"""Data root, settings and path helpers for Streaky."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from streaky.fileio import read_yaml


DEFAULT_API_URL = "http://localhost:4000"
DEFAULT_HTTP_TIMEOUT = 10.0
ACCESS_TOKEN_MINUTES = 15
REFRESH_TOKEN_DAYS = 7


def data_root() -> Path:
    """Get the data root directory (holds config.yaml, session.json and db/)."""
    return Path(
        os.environ.get("STREAKY_ROOT", str(Path.home() / ".streaky"))
    ).expanduser().resolve()


@dataclass
class Settings:
    api_url: str = DEFAULT_API_URL
    jwt_access_secret: str = "change-me"
    jwt_refresh_secret: str = "change-me-too"
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    access_token_minutes: int = ACCESS_TOKEN_MINUTES
    refresh_token_days: int = REFRESH_TOKEN_DAYS


def load_settings(root: Path | None = None) -> Settings:
    """Build settings from config.yaml, then let environment variables win."""
    if root is None:
        root = data_root()
    raw = read_yaml(config_path(root))

    settings = Settings(
        api_url=str(raw.get("api_url", DEFAULT_API_URL)),
        jwt_access_secret=str(raw.get("jwt_access_secret", "change-me")),
        jwt_refresh_secret=str(raw.get("jwt_refresh_secret", "change-me-too")),
        http_timeout=float(raw.get("http_timeout", DEFAULT_HTTP_TIMEOUT)),
        access_token_minutes=int(raw.get("access_token_minutes", ACCESS_TOKEN_MINUTES)),
        refresh_token_days=int(raw.get("refresh_token_days", REFRESH_TOKEN_DAYS)),
    )

    env = os.environ
    if env.get("STREAKY_API_URL"):
        settings.api_url = env["STREAKY_API_URL"]
    if env.get("JWT_ACCESS_SECRET"):
        settings.jwt_access_secret = env["JWT_ACCESS_SECRET"]
    if env.get("JWT_REFRESH_SECRET"):
        settings.jwt_refresh_secret = env["JWT_REFRESH_SECRET"]
    if env.get("STREAKY_HTTP_TIMEOUT"):
        settings.http_timeout = float(env["STREAKY_HTTP_TIMEOUT"])
    settings.api_url = settings.api_url.rstrip("/")
    return settings


# ── Path helpers ──────────────────────────────────────────────

def config_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "config.yaml"


def session_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "session.json"


def db_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "db"
