"""
Provider Manager — picks the Vision-Language Service for one search.

The provider is built from the Credentials handed in by the caller, never
from ambient state, so a key change takes effect on the very next search.

config.VLM_PROVIDER:
  auto       — cheapest provider whose key is present: google → openai → anthropic
  google     — Gemini only
  openai     — OpenAI only
  anthropic  — Anthropic only
"""
from __future__ import annotations

import logging

import config
from errors import ConfigurationError
from key_store import Credentials
from providers.base import VisionLanguageService

logger = logging.getLogger(__name__)

# Cheapest first; auto mode takes the first one with a key
PROVIDER_ORDER = ("google", "openai", "anthropic")

_KEY_FIELDS = {
    "google":    "google_api_key",
    "openai":    "openai_api_key",
    "anthropic": "anthropic_api_key",
}


def build_service(credentials: Credentials) -> VisionLanguageService:
    """Instantiate the configured provider. Raises ConfigurationError when no key fits."""
    mode = (config.VLM_PROVIDER or "auto").strip().lower()

    if mode == "auto":
        for name in PROVIDER_ORDER:
            key = getattr(credentials, _KEY_FIELDS[name])
            if key:
                logger.info("Auto-selected %s vision-language provider", name)
                return _make(name, key)
        raise ConfigurationError(
            "No vision-language provider configured. Set GEMINI_API_KEY "
            "(or GOOGLE_API_KEY), OPENAI_API_KEY or ANTHROPIC_API_KEY."
        )

    if mode not in _KEY_FIELDS:
        raise ConfigurationError(
            f"VLM_PROVIDER={mode!r} is not one of: auto, {', '.join(PROVIDER_ORDER)}"
        )

    key = getattr(credentials, _KEY_FIELDS[mode])
    if not key:
        raise ConfigurationError(
            f"VLM_PROVIDER={mode} but {_KEY_FIELDS[mode].upper()} is not set."
        )
    return _make(mode, key)


def _make(name: str, api_key: str) -> VisionLanguageService:
    if name == "google":
        from providers.gemini_provider import GeminiProvider
        return GeminiProvider(api_key)
    if name == "openai":
        from providers.openai_provider import OpenAIProvider
        return OpenAIProvider(api_key)
    from providers.anthropic_provider import AnthropicProvider
    return AnthropicProvider(api_key)
