"""
Shared pytest fixtures.

Every test runs with the credential environment cleared, so nothing a
developer has in their shell or .env leaks into provider selection.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from errors import ProviderError  # noqa: E402
from providers.base import VisionLanguageService  # noqa: E402
from search_backends.base import ProductCandidate  # noqa: E402

_CREDENTIAL_ENV = (
    "SERPAPI_API_KEY", "GOOGLE_API_KEY", "GEMINI_API_KEY",
    "OPENAI_API_KEY", "ANTHROPIC_API_KEY",
)


@pytest.fixture(autouse=True)
def clean_credential_env(monkeypatch):
    for name in _CREDENTIAL_ENV:
        monkeypatch.delenv(name, raising=False)
    yield


def make_candidate(
    price: float = 19.99,
    url: Optional[str] = None,
    description: str = "Acme Drone X200",
    vendor: str = "Shop",
    tier: str = "Visual Match",
) -> ProductCandidate:
    return ProductCandidate(
        tier=tier,
        vendor=vendor,
        price=price,
        currency="USD",
        url=url or f"https://shop.example.com/item/{price}",
        image="https://img.example.com/thumb.jpg",
        description=description,
        probable_flaws="None",
        quality_score=9,
        confidence_score=95,
    )


def make_service(generate_replies=None, chat_reply: str = "Sure.") -> MagicMock:
    """
    Fake VisionLanguageService. generate_replies is a list consumed in call
    order; an Exception instance in the list is raised instead of returned.
    """
    service = MagicMock(spec=VisionLanguageService)
    service.name = "fake"
    service.model_id = "fake-1"
    service.full_name = "fake/fake-1"
    service.generate = AsyncMock(side_effect=list(generate_replies or []))
    service.chat = AsyncMock(return_value=chat_reply)
    return service


class FakeSerpApi:
    """Stands in for SerpApiClient: one canned JSON body (or ProviderError) per engine."""

    def __init__(self, responses: Optional[dict] = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, dict]] = []

    async def query(self, engine: str, params: dict) -> dict:
        self.calls.append((engine, params))
        response = self.responses.get(engine, {})
        if isinstance(response, Exception):
            raise response
        return response

    def engines(self) -> list[str]:
        return [engine for engine, _ in self.calls]


@pytest.fixture
def provider_error() -> ProviderError:
    return ProviderError("boom")
