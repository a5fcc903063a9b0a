"""
Visual search backend — SerpApi "google_lens" reverse-image search.

Takes the canonical reference image URL and returns the provider's visual
matches as ProductCandidates. Lens is trusted for visual accuracy, so no
price-plausibility filter is applied here — only the structural validator.
Prices are labelled USD like the shopping fallback; the search locale is
config.SEARCH_COUNTRY.

Raw visual_matches item (fields we read):
  {"title": "...", "link": "...", "source": "Walmart",
   "thumbnail": "https://...", "price": {"value": "$24.99", "extracted_value": 24.99}}
"""
from __future__ import annotations

import logging
from typing import Optional

import config
from errors import ProviderError
from search_backends.base import DEFAULT_DESCRIPTION, ProductCandidate, SearchBackend
from search_backends.normalize import as_text, extract_price, is_valid_product, resolve_url
from search_backends.serpapi import SerpApiClient

logger = logging.getLogger(__name__)

TIER             = "Visual Match"
QUALITY_SCORE    = 9
CONFIDENCE_SCORE = 95


class VisualSearchBackend(SearchBackend):

    def __init__(self, client: SerpApiClient) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "SerpApi / Google Lens"

    async def search(self, target: str) -> list[ProductCandidate]:
        """Reverse-image search for `target` (an absolute image URL)."""
        params = {
            "url":     target,
            "hl":      config.SEARCH_LANGUAGE,
            "country": config.SEARCH_COUNTRY,
        }
        try:
            data = await self._client.query("google_lens", params)
        except ProviderError as exc:
            logger.warning("Lens search failed: %s", exc)
            return []

        matches = data.get("visual_matches")
        if not isinstance(matches, list):
            matches = []
        logger.info("Lens returned %d visual matches", len(matches))

        items: list[ProductCandidate] = []
        for raw in matches[: config.LENS_MAX_RESULTS]:
            flat = _flatten(raw)
            if flat is None or not is_valid_product(flat):
                continue
            items.append(self.normalize(flat))
        return items

    @staticmethod
    def normalize(flat: dict) -> ProductCandidate:
        return ProductCandidate(
            tier             = TIER,
            vendor           = flat.get("source") or TIER,
            price            = extract_price(flat.get("price")),
            currency         = "USD",
            url              = resolve_url(flat),
            image            = flat.get("thumbnail"),
            description      = flat.get("title") or DEFAULT_DESCRIPTION,
            probable_flaws   = "None",
            quality_score    = QUALITY_SCORE,
            confidence_score = CONFIDENCE_SCORE,
        )


def _flatten(raw: dict) -> Optional[dict]:
    """Map a visual_matches item onto the generic raw shape used by normalize.py."""
    if not raw or not isinstance(raw, dict):
        return None

    price = raw.get("price")
    if isinstance(price, dict):
        price = price.get("extracted_value") or price.get("value")

    return {
        "title":                raw.get("title"),
        "source":               raw.get("source"),
        "link":                 as_text(raw.get("link")),
        "product_link":         as_text(raw.get("product_link")),
        "related_content_link": as_text(raw.get("related_content_link")),
        "thumbnail":            as_text(raw.get("thumbnail")) or as_text(raw.get("image")),
        "price":                price,
    }
