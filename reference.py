"""
reference.py — find the canonical reference image that drives visual search.

A clean, white-background product shot finds far better visual matches than
the user's own (often cluttered) photo, so when a photo was supplied we look
the identified product up on Google Images and use the first thumbnail.
"""
from __future__ import annotations

import logging
from typing import Optional

from errors import ProviderError
from identifier import UNKNOWN_PRODUCT
from search_backends.normalize import as_text, clean_query
from search_backends.serpapi import SerpApiClient

logger = logging.getLogger(__name__)

CANONICAL_SUFFIX = "white background product photo"


async def find_canonical_image(client: SerpApiClient, product_name: str) -> Optional[str]:
    """First Google Images thumbnail for the product, or None."""
    params = {
        "q":    f"{clean_query(product_name)} {CANONICAL_SUFFIX}".strip(),
        "num":  1,
        "safe": "active",
    }
    try:
        data = await client.query("google_images", params)
    except ProviderError as exc:
        logger.warning("Canonical lookup failed: %s", exc)
        return None

    results = data.get("images_results")
    if not isinstance(results, list) or not results:
        return None
    first = results[0]
    if isinstance(first, dict):
        return as_text(first.get("thumbnail"))
    return None


async def resolve_reference(
    client: SerpApiClient,
    product_name: str,
    image_provided: bool,
    reference_url: Optional[str] = None,
) -> Optional[str]:
    """
    Canonical URL for visual search:
      photo supplied    → Google Images lookup for the identified product
                          (skipped when identification fell back to the placeholder)
      link supplied     → the link itself (also used when the lookup finds nothing)
      neither           → None (visual search is skipped)
    """
    canonical = None
    if image_provided and product_name and product_name != UNKNOWN_PRODUCT:
        canonical = await find_canonical_image(client, product_name)

    if not canonical and reference_url:
        canonical = reference_url.strip() or None

    logger.info("Canonical reference: %s", canonical or "none")
    return canonical
