"""
Centralised settings for the meme pipeline (env-first, code-light).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SOURCES_PATH = Path(__file__).resolve().parent / "sources.yaml"
DEFAULT_USER_AGENT = "memetok-pipeline/1.0"


@dataclass
class MemetokSettings:
    base_url: str
    db_path: Path
    sources_path: Path
    per_source_limit: int
    search_limit: int
    http_timeout: int
    max_workers: int
    user_agent: str
    spacy_model: str
    strict_storage: bool
    log_level: str


def _int_from_env(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = int(raw)
        return value if value > 0 else default
    except ValueError:
        logger.warning("Invalid int value for %s=%s; using default %s", key, raw, default)
        return default


def _bool_from_env(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or str(raw).strip() == "":
        return default
    token = raw.strip().lower()
    if token in ("1", "true", "yes", "on"):
        return True
    if token in ("0", "false", "no", "off"):
        return False
    logger.warning("Invalid bool value for %s=%s; using default %s", key, raw, default)
    return default


def load_settings() -> MemetokSettings:
    sources_env = os.getenv("MEMETOK_SOURCES_PATH")
    return MemetokSettings(
        base_url=(os.getenv("MEMETOK_BASE_URL") or "https://www.reddit.com").rstrip("/"),
        db_path=Path(os.getenv("MEMETOK_DB_PATH") or "memes.sqlite"),
        sources_path=Path(sources_env) if sources_env else DEFAULT_SOURCES_PATH,
        per_source_limit=_int_from_env("MEMETOK_PER_SOURCE_LIMIT", 25),
        search_limit=_int_from_env("MEMETOK_SEARCH_LIMIT", 25),
        http_timeout=_int_from_env("MEMETOK_HTTP_TIMEOUT", 15),
        max_workers=_int_from_env("MEMETOK_MAX_WORKERS", 8),
        user_agent=os.getenv("MEMETOK_USER_AGENT") or DEFAULT_USER_AGENT,
        spacy_model=os.getenv("MEMETOK_SPACY_MODEL") or "en_core_web_sm",
        strict_storage=_bool_from_env("MEMETOK_STRICT_STORAGE", False),
        log_level=(os.getenv("MEMETOK_LOG_LEVEL") or "INFO").upper(),
    )
