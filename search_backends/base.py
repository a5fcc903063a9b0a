"""
Abstract base for all search backends.
Every backend must return the same ProductCandidate list — the orchestrator
doesn't care which provider engine produced it.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

DEFAULT_VENDOR      = "Global Marketplace"
DEFAULT_DESCRIPTION = "No description"


@dataclass(frozen=True)
class ProductCandidate:
    tier: str                   # "Visual Match" | "Market Option"
    vendor: str
    price: float                # > 0 once past the validator
    currency: str
    url: str                    # never empty, see normalize.resolve_url
    image: Optional[str]
    description: str
    probable_flaws: str         # free-text caveat, e.g. condition
    quality_score: int          # 1–10
    confidence_score: int       # 0–100

    def to_dict(self) -> dict:
        return {
            "tier":            self.tier,
            "vendor":          self.vendor,
            "price":           self.price,
            "currency":        self.currency,
            "url":             self.url,
            "image":           self.image,
            "description":     self.description,
            "probableFlaws":   self.probable_flaws,
            "qualityScore":    self.quality_score,
            "confidenceScore": self.confidence_score,
        }


class SearchBackend(ABC):
    """All backends must implement this interface."""

    @abstractmethod
    async def search(self, target: str) -> list[ProductCandidate]:
        """
        Search for offers matching `target` (a query or an image URL,
        depending on the backend). Must never raise: provider failures
        yield an empty list.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name for logs/display."""
        ...
