"""
Keyword search backend — SerpApi "google_shopping".

Used as the fallback when visual search is skipped or finds nothing.
Results are requested cheapest-first and capped server-side.

Raw shopping_results item (fields we read):
  {"title": "...", "link": "...", "product_link": "...", "source": "eBay",
   "price": "$19.99", "extracted_price": 19.99, "thumbnail": "https://...",
   "rating": 4.4, "condition": "Refurbished"}
"""
from __future__ import annotations

import logging
import math
from typing import Optional

import config
from errors import ProviderError
from search_backends.base import (
    DEFAULT_DESCRIPTION, DEFAULT_VENDOR, ProductCandidate, SearchBackend,
)
from search_backends.normalize import (
    as_text, clean_query, extract_price, is_valid_product, resolve_url,
)
from search_backends.serpapi import SerpApiClient

logger = logging.getLogger(__name__)

TIER                  = "Market Option"
DEFAULT_QUALITY_SCORE = 8
CONFIDENCE_SCORE      = 80


class KeywordSearchBackend(SearchBackend):

    def __init__(self, client: SerpApiClient) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "SerpApi / Google Shopping"

    async def search(self, target: str) -> list[ProductCandidate]:
        """Shopping search for `target` (free text — normalised here)."""
        query = clean_query(target)
        if not query:
            logger.info("Shopping search skipped: empty query")
            return []

        params = {
            "q":             query,
            "google_domain": config.GOOGLE_DOMAIN,
            "gl":            config.SEARCH_COUNTRY,
            "hl":            config.SEARCH_LANGUAGE,
            "num":           config.SHOPPING_NUM_RESULTS,
            "sort":          config.SHOPPING_SORT,
        }
        try:
            data = await self._client.query("google_shopping", params)
        except ProviderError as exc:
            logger.warning("Shopping search failed for '%s': %s", query, exc)
            return []

        results = data.get("shopping_results")
        if not isinstance(results, list):
            results = []
        logger.info("Shopping returned %d products for query '%s'", len(results), query)

        items: list[ProductCandidate] = []
        for raw in results:
            flat = _flatten(raw)
            if flat is None or not is_valid_product(flat):
                continue
            items.append(self.normalize(flat))
        return items

    @staticmethod
    def normalize(flat: dict) -> ProductCandidate:
        return ProductCandidate(
            tier             = TIER,
            vendor           = flat.get("source") or DEFAULT_VENDOR,
            price            = extract_price(flat.get("price")),
            currency         = "USD",
            url              = resolve_url(flat),
            image            = flat.get("thumbnail"),
            description      = flat.get("title") or DEFAULT_DESCRIPTION,
            probable_flaws   = flat.get("condition") or "New",
            quality_score    = quality_from_rating(flat.get("rating")),
            confidence_score = CONFIDENCE_SCORE,
        )


def quality_from_rating(rating) -> int:
    """0–5 star rating → 1–10 quality score (half-up rounding). Default 8."""
    try:
        value = float(rating)
    except (TypeError, ValueError):
        return DEFAULT_QUALITY_SCORE
    if not value or math.isnan(value):
        return DEFAULT_QUALITY_SCORE
    return max(1, min(10, int(math.floor(value * 2 + 0.5))))


def _flatten(raw: dict) -> Optional[dict]:
    """Map a shopping_results item onto the generic raw shape used by normalize.py."""
    if not raw or not isinstance(raw, dict):
        return None

    merchant = raw.get("merchant")
    source = raw.get("source") or (merchant.get("name") if isinstance(merchant, dict) else None)

    return {
        "title":                raw.get("title"),
        "source":               source,
        "link":                 as_text(raw.get("link")),
        "product_link":         as_text(raw.get("product_link")),
        "related_content_link": as_text(raw.get("related_content_link")),
        "thumbnail":            as_text(raw.get("thumbnail")),
        "price":                raw.get("extracted_price") or raw.get("price"),
        "rating":               raw.get("rating"),
        "condition":            raw.get("second_hand_condition") or raw.get("condition"),
    }
