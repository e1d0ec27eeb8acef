"""Runtime configuration and logging setup.

Configuration via environment variables (a ``.env`` file at the project root is
loaded first, without overriding variables already set in the process):

- EDU_BASE_URL (default: https://edu.tatar.ru/index.htm)
- CATALOG_CSV_PATH (default: institutions.csv, relative to the working directory)
- CRAWL_TIMEOUT, CRAWL_USER_AGENT
- TELEGRAM_BOT_TOKEN, TELEGRAM_POLL_TIMEOUT, TELEGRAM_WORKERS, BOT_AUTOSTART
- LOG_LEVEL (default: INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_BASE_URL = "https://edu.tatar.ru/index.htm"
DEFAULT_CSV_PATH = "institutions.csv"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _load_env_from_file() -> None:
    """Load KEY=VALUE pairs from a project-root .env file if present."""
    try:
        root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
        env_path = os.path.join(root_dir, ".env")
        if not os.path.isfile(env_path):
            return
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                s = line.strip()
                if not s or s.startswith("#") or "=" not in s:
                    continue
                key, val = s.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")
                if key and (key not in os.environ or not os.environ[key]):
                    os.environ[key] = val
    except OSError:
        # .env is optional
        pass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


@dataclass
class Settings:
    base_url: str = DEFAULT_BASE_URL
    csv_path: str = DEFAULT_CSV_PATH
    crawl_timeout: float = 15.0
    user_agent: str = "EduCatalog-Crawler/0.1"
    telegram_token: Optional[str] = None
    telegram_poll_timeout: int = 25
    telegram_workers: int = 4
    bot_autostart: bool = True
    log_level: str = "INFO"


def load_settings() -> Settings:
    _load_env_from_file()
    return Settings(
        base_url=os.getenv("EDU_BASE_URL") or DEFAULT_BASE_URL,
        csv_path=os.getenv("CATALOG_CSV_PATH") or DEFAULT_CSV_PATH,
        crawl_timeout=_env_float("CRAWL_TIMEOUT", 15.0),
        user_agent=os.getenv("CRAWL_USER_AGENT") or "EduCatalog-Crawler/0.1",
        telegram_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
        telegram_poll_timeout=_env_int("TELEGRAM_POLL_TIMEOUT", 25),
        telegram_workers=max(1, _env_int("TELEGRAM_WORKERS", 4)),
        bot_autostart=_env_bool("BOT_AUTOSTART", True),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = load_settings()
    return _settings_cache


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    lvl = (level or get_settings().log_level or "INFO").upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=lvl, format=LOG_FORMAT)
    else:
        root.setLevel(lvl)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
