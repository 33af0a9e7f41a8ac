"""config.py — Environment-driven defaults for speedread (read from .env when present)."""

import os
from pathlib import Path

from dotenv import load_dotenv

from chapters import SegmenterConfig
from pacing import PauseRule, PauseSettings

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name, "").strip()
    return float(value) if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name, "").strip().lower()
    if not value:
        return default
    return value in ("1", "true", "yes", "on")


# Playback
DEFAULT_WPM = _env_float("SPEEDREAD_WPM", 300)
COMMA_PAUSE_ENABLED = _env_bool("SPEEDREAD_COMMA_PAUSE_ENABLED", True)
COMMA_PAUSE_MS = _env_float("SPEEDREAD_COMMA_PAUSE_MS", 200)
PERIOD_PAUSE_ENABLED = _env_bool("SPEEDREAD_PERIOD_PAUSE_ENABLED", True)
PERIOD_PAUSE_MS = _env_float("SPEEDREAD_PERIOD_PAUSE_MS", 300)
PARAGRAPH_PAUSE_ENABLED = _env_bool("SPEEDREAD_PARAGRAPH_PAUSE_ENABLED", True)
PARAGRAPH_PAUSE_MS = _env_float("SPEEDREAD_PARAGRAPH_PAUSE_MS", 400)

# Chapter detection
SPARSE_PAGE_WORDS = _env_int("SPEEDREAD_SPARSE_PAGE_WORDS", 150)
MAX_CHAPTER_CANDIDATES = _env_int("SPEEDREAD_MAX_CHAPTER_CANDIDATES", 50)
FALLBACK_PAGES_PER_CHAPTER = _env_int("SPEEDREAD_FALLBACK_PAGES_PER_CHAPTER", 10)

# Input / session
OCR_LANGUAGE = os.getenv("SPEEDREAD_OCR_LANGUAGE", "eng").strip() or "eng"
PROGRESS_FILE = Path(os.getenv("SPEEDREAD_PROGRESS_FILE", ".speedread_progress.json"))


def default_pause_settings() -> PauseSettings:
    return PauseSettings(
        comma=PauseRule(COMMA_PAUSE_ENABLED, COMMA_PAUSE_MS),
        period=PauseRule(PERIOD_PAUSE_ENABLED, PERIOD_PAUSE_MS),
        paragraph=PauseRule(PARAGRAPH_PAUSE_ENABLED, PARAGRAPH_PAUSE_MS),
    )


def default_segmenter_config() -> SegmenterConfig:
    return SegmenterConfig(
        sparse_page_words=SPARSE_PAGE_WORDS,
        max_candidates=MAX_CHAPTER_CANDIDATES,
        fallback_pages_per_chapter=FALLBACK_PAGES_PER_CHAPTER,
    )
