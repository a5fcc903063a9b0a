"""
key_store.py — single source of truth for all API keys.

Priority order for every key:
  1. Environment variable / .env file       — set by the deployment
  2. User override (e.g. a settings dialog) — passed in per call
  3. Nothing                                 — no hard-coded fallback keys

Keys are resolved once per search and handed to the pipeline as an explicit
Credentials value; nothing below sourcing.py reads the environment itself.

Key names (env vars are the uppercase equivalent):
  serpapi_key        →  SERPAPI_API_KEY
  google_api_key     →  GOOGLE_API_KEY  (or GEMINI_API_KEY)
  openai_api_key     →  OPENAI_API_KEY
  anthropic_api_key  →  ANTHROPIC_API_KEY
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

_ENV_NAMES: dict[str, tuple[str, ...]] = {
    "serpapi_key":       ("SERPAPI_API_KEY",),
    "google_api_key":    ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    "openai_api_key":    ("OPENAI_API_KEY",),
    "anthropic_api_key": ("ANTHROPIC_API_KEY",),
}

# Overrides shorter than this are treated as typos / placeholders
_MIN_OVERRIDE_LEN = 6


@dataclass(frozen=True)
class Credentials:
    serpapi_key: Optional[str] = None
    google_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None


def get(key_name: str, overrides: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Return the value for key_name, checking env first then the user override.
    Returns None if not set anywhere.
    """
    for env_name in _ENV_NAMES.get(key_name, (key_name.upper(),)):
        env_val = os.getenv(env_name)
        if env_val:
            return env_val

    if overrides:
        user_val = (overrides.get(key_name) or "").strip()
        if len(user_val) >= _MIN_OVERRIDE_LEN:
            return user_val
        if user_val:
            logger.warning("key_store: ignoring override for %s (too short)", key_name)

    return None


def resolve(overrides: Optional[Mapping[str, str]] = None) -> Credentials:
    """Snapshot every known key into a Credentials value."""
    creds = Credentials(**{name: get(name, overrides) for name in _ENV_NAMES})
    logger.debug(
        "Resolved credentials: %s",
        ", ".join(f"{name}={mask(getattr(creds, name))}" for name in _ENV_NAMES),
    )
    return creds


def mask(value: Optional[str]) -> str:
    """Return a masked version safe to print or log."""
    if not value:
        return "not set"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}{'*' * (len(value) - 8)}{value[-4:]}"
